"""Etat de jeu répliqué dans chaque client (équipes, buzzer, plateau)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

DEFAULT_COLOR = "#ef4444"
DEFAULT_AVATAR = "🎯"
TEAM_COLORS = (
    "#ef4444",
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#8b5cf6",
    "#ec4899",
    "#06b6d4",
    "#f97316",
)


def as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def completion_key(category_id: str, question_id: str) -> str:
    """Clé composite "categorie-question" d'une case du plateau."""
    return f"{category_id}-{question_id}"


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    color: str = DEFAULT_COLOR
    avatar: str = DEFAULT_AVATAR
    score: int = 0
    streak: int = 0

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional["Team"]:
        """Construit une équipe depuis un payload réseau ou un snapshot.

        Les champs optionnels manquants prennent une valeur par défaut ; sans
        identifiant il n'y a pas d'équipe. L'identifiant de connexion
        (socketId) est volontairement ignoré.
        """
        team_id = data.get("id")
        if not team_id:
            return None
        return cls(
            id=str(team_id),
            name=str(data.get("name") or team_id),
            color=str(data.get("color") or DEFAULT_COLOR),
            avatar=str(data.get("avatar") or DEFAULT_AVATAR),
            score=as_int(data.get("score")),
            streak=as_int(data.get("streak")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "avatar": self.avatar,
            "score": self.score,
            "streak": self.streak,
        }


@dataclass(frozen=True)
class GameState:
    current_round: int = 1

    # Buzzer
    buzzer_locked: bool = False
    buzzer_team: Optional[str] = None

    # Equipes, dans l'ordre d'arrivée
    teams: Tuple[Team, ...] = ()

    # Plateau
    selected_category: Optional[str] = None
    selected_question: Optional[str] = None
    completed_questions: Tuple[str, ...] = ()
    revealed_special_cards: Tuple[str, ...] = ()

    # Ecran
    revealed_question: bool = False
    revealed_answer: bool = False
    current_question: Optional[str] = None
    current_answer: Optional[str] = None
    question_type: str = "text"
    question_media: Optional[str] = None
    answer_type: str = "text"
    answer_media: Optional[str] = None

    # Lecture audio
    audio_playing: bool = False
    audio_position: float = 0.0

    def team(self, team_id: Optional[str]) -> Optional[Team]:
        for t in self.teams:
            if t.id == team_id:
                return t
        return None

    def has_team(self, team_id: Optional[str]) -> bool:
        return self.team(team_id) is not None

    def is_completed(self, category_id: str, question_id: str) -> bool:
        return completion_key(category_id, question_id) in self.completed_questions

    def is_special_revealed(self, category_id: str, question_id: str) -> bool:
        return completion_key(category_id, question_id) in self.revealed_special_cards

    def snapshot(self) -> Dict[str, Any]:
        """Projection persistée dans le Snapshot Store."""
        return {
            "currentRound": self.current_round,
            "completedQuestions": list(self.completed_questions),
            "teams": [t.to_dict() for t in self.teams],
            "buzzerLocked": self.buzzer_locked,
            "buzzerTeam": self.buzzer_team,
        }


def standings(state: GameState) -> List[Team]:
    """Classement pour le tableau des scores (score décroissant, ordre d'arrivée sinon)."""
    return sorted(state.teams, key=lambda t: -t.score)
