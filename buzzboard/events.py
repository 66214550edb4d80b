"""Catalogue des événements du bus : noms réseau, mode de diffusion et payloads.

Chaque événement est une dataclass figée. ``command`` est le nom émis vers le
relais, ``notification`` le nom que le relais rediffuse aux clients. Les
événements purement locaux (sélection d'une case, chargement du snapshot...)
n'ont ni l'un ni l'autre.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type

from .state import Team, as_int

# Modes de diffusion du relais
OTHERS = "others"  # tout le monde sauf l'émetteur
ALL = "all"  # émetteur compris

# commande entrante -> (notification sortante, mode)
ROUTES: Dict[str, Tuple[str, str]] = {
    "team:register": ("team:registered", OTHERS),
    "team:rejoin": ("team:registered", ALL),
    "team:remove": ("team:removed", ALL),
    "buzzer:press": ("buzzer:pressed", OTHERS),
    "buzzer:clear": ("buzzer:cleared", OTHERS),
    "buzzer:reset": ("buzzer:reset", ALL),
    "round:change": ("round:changed", OTHERS),
    "question:reveal": ("question:revealed", OTHERS),
    "question:hide": ("question:hidden", OTHERS),
    "question:clear": ("question:cleared", OTHERS),
    "answer:reveal": ("answer:revealed", OTHERS),
    "answer:hide": ("answer:hidden", OTHERS),
    "question:complete": ("question:completed", ALL),
    "question:uncomplete": ("question:uncompleted", ALL),
    "score:update": ("score:updated", OTHERS),
    "score:set": ("score:set", OTHERS),
    "streak:update": ("streak:updated", OTHERS),
    "special:reveal": ("special:revealed", OTHERS),
    "special:hide": ("special:hide", OTHERS),
    "audio:play": ("audio:play", OTHERS),
    "audio:pause": ("audio:pause", OTHERS),
    "audio:seek": ("audio:seek", OTHERS),
    "game:reset_all": ("game:reset_all", ALL),
}

# Emis par le relais lui-même à la déconnexion d'un buzzer
TEAM_DISCONNECTED = "team:disconnected"


def as_mapping(data: Any) -> Mapping[str, Any]:
    return data if isinstance(data, Mapping) else {}


def as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True)
class Event:
    command: ClassVar[Optional[str]] = None
    notification: ClassVar[Optional[str]] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional["Event"]:
        return cls()

    def payload(self) -> Optional[Dict[str, Any]]:
        return None


# Equipes


@dataclass(frozen=True)
class TeamRegistered(Event):
    command: ClassVar[Optional[str]] = "team:register"
    notification: ClassVar[Optional[str]] = "team:registered"

    team: Team
    avatar_id: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        team = Team.from_payload(data)
        if team is None:
            return None
        return cls(team=team, avatar_id=str(data.get("avatarId") or ""))

    def payload(self) -> Optional[Dict[str, Any]]:
        return {**self.team.to_dict(), "avatarId": self.avatar_id}


@dataclass(frozen=True)
class TeamRejoined(TeamRegistered):
    """Même effet qu'une inscription ; le relais le renvoie aussi à l'émetteur."""

    command: ClassVar[Optional[str]] = "team:rejoin"


@dataclass(frozen=True)
class TeamRemoved(Event):
    command: ClassVar[Optional[str]] = "team:remove"
    notification: ClassVar[Optional[str]] = "team:removed"

    team_id: str

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        return cls(team_id=str(data.get("teamId") or ""))

    def payload(self) -> Optional[Dict[str, Any]]:
        return {"teamId": self.team_id}


@dataclass(frozen=True)
class TeamDisconnected(Event):
    notification: ClassVar[Optional[str]] = TEAM_DISCONNECTED

    team_id: str
    socket_id: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        return cls(team_id=str(data.get("teamId") or ""), socket_id=str(data.get("socketId") or ""))


# Buzzer


@dataclass(frozen=True)
class BuzzerPressed(Event):
    command: ClassVar[Optional[str]] = "buzzer:press"
    notification: ClassVar[Optional[str]] = "buzzer:pressed"

    team_id: str
    team_name: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        return cls(team_id=str(data.get("teamId") or ""), team_name=str(data.get("teamName") or ""))

    def payload(self) -> Optional[Dict[str, Any]]:
        return {"teamId": self.team_id, "teamName": self.team_name}


@dataclass(frozen=True)
class BuzzerCleared(Event):
    command: ClassVar[Optional[str]] = "buzzer:clear"
    notification: ClassVar[Optional[str]] = "buzzer:cleared"


@dataclass(frozen=True)
class BuzzerReset(Event):
    command: ClassVar[Optional[str]] = "buzzer:reset"
    notification: ClassVar[Optional[str]] = "buzzer:reset"


# Manche


@dataclass(frozen=True)
class RoundChanged(Event):
    command: ClassVar[Optional[str]] = "round:change"
    notification: ClassVar[Optional[str]] = "round:changed"

    round: int

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        value = as_int(data.get("round"), 0)
        if value < 1:
            return None
        return cls(round=value)

    def payload(self) -> Optional[Dict[str, Any]]:
        return {"round": self.round}


# Question / réponse à l'écran


@dataclass(frozen=True)
class QuestionSelected(Event):
    """Focus de l'animateur sur une case ; local, l'écran reçoit un question:clear."""

    category_id: str
    question_id: str
    question: Optional[str] = None
    answer: Optional[str] = None
    question_type: str = "text"
    question_media: Optional[str] = None
    answer_type: str = "text"
    answer_media: Optional[str] = None


@dataclass(frozen=True)
class _Reveal(Event):
    content: Optional[str] = None
    type: str = "text"
    media_ref: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        return cls(
            content=_opt_str(data.get("content")),
            type=str(data.get("type") or "text"),
            media_ref=_opt_str(data.get("mediaRef")),
        )

    def payload(self) -> Optional[Dict[str, Any]]:
        return {"content": self.content, "type": self.type, "mediaRef": self.media_ref}


@dataclass(frozen=True)
class QuestionRevealed(_Reveal):
    command: ClassVar[Optional[str]] = "question:reveal"
    notification: ClassVar[Optional[str]] = "question:revealed"


@dataclass(frozen=True)
class AnswerRevealed(_Reveal):
    command: ClassVar[Optional[str]] = "answer:reveal"
    notification: ClassVar[Optional[str]] = "answer:revealed"


@dataclass(frozen=True)
class QuestionHidden(Event):
    command: ClassVar[Optional[str]] = "question:hide"
    notification: ClassVar[Optional[str]] = "question:hidden"


@dataclass(frozen=True)
class AnswerHidden(Event):
    command: ClassVar[Optional[str]] = "answer:hide"
    notification: ClassVar[Optional[str]] = "answer:hidden"


@dataclass(frozen=True)
class QuestionCleared(Event):
    command: ClassVar[Optional[str]] = "question:clear"
    notification: ClassVar[Optional[str]] = "question:cleared"


# Plateau


@dataclass(frozen=True)
class _BoardKey(Event):
    category_id: str
    question_id: str

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        category_id = data.get("categoryId")
        question_id = data.get("questionId")
        if not category_id or not question_id:
            return None
        return cls(category_id=str(category_id), question_id=str(question_id))

    def payload(self) -> Optional[Dict[str, Any]]:
        return {"categoryId": self.category_id, "questionId": self.question_id}


@dataclass(frozen=True)
class QuestionCompleted(_BoardKey):
    command: ClassVar[Optional[str]] = "question:complete"
    notification: ClassVar[Optional[str]] = "question:completed"


@dataclass(frozen=True)
class QuestionUncompleted(_BoardKey):
    command: ClassVar[Optional[str]] = "question:uncomplete"
    notification: ClassVar[Optional[str]] = "question:uncompleted"


@dataclass(frozen=True)
class SpecialRevealed(_BoardKey):
    command: ClassVar[Optional[str]] = "special:reveal"
    notification: ClassVar[Optional[str]] = "special:revealed"

    special_type: str = ""
    special_config: Optional[Dict[str, Any]] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        category_id = data.get("categoryId")
        question_id = data.get("questionId")
        if not category_id or not question_id:
            return None
        config = data.get("specialConfig")
        return cls(
            category_id=str(category_id),
            question_id=str(question_id),
            special_type=str(data.get("specialType") or ""),
            special_config=dict(config) if isinstance(config, Mapping) else None,
        )

    def payload(self) -> Optional[Dict[str, Any]]:
        data: Dict[str, Any] = {
            "categoryId": self.category_id,
            "questionId": self.question_id,
            "specialType": self.special_type,
        }
        if self.special_config is not None:
            data["specialConfig"] = self.special_config
        return data


@dataclass(frozen=True)
class SpecialHidden(_BoardKey):
    command: ClassVar[Optional[str]] = "special:hide"
    notification: ClassVar[Optional[str]] = "special:hide"


# Scores


@dataclass(frozen=True)
class ScoreUpdated(Event):
    """Score relatif : ``points`` s'ajoute au score courant.

    ``new_score`` accompagne le delta pour l'affichage ; il ne sert de repli
    que si ``points`` est absent du payload.
    """

    command: ClassVar[Optional[str]] = "score:update"
    notification: ClassVar[Optional[str]] = "score:updated"

    team_id: str
    points: Optional[int] = None
    new_score: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        points = data.get("points")
        new_score = data.get("newScore")
        return cls(
            team_id=str(data.get("teamId") or ""),
            points=None if points is None else as_int(points),
            new_score=None if new_score is None else as_int(new_score),
        )

    def payload(self) -> Optional[Dict[str, Any]]:
        return {"teamId": self.team_id, "points": self.points, "newScore": self.new_score}


@dataclass(frozen=True)
class ScoreSet(Event):
    command: ClassVar[Optional[str]] = "score:set"
    notification: ClassVar[Optional[str]] = "score:set"

    team_id: str
    score: int

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        if "score" not in data:
            return None
        return cls(team_id=str(data.get("teamId") or ""), score=as_int(data.get("score")))

    def payload(self) -> Optional[Dict[str, Any]]:
        return {"teamId": self.team_id, "score": self.score}


@dataclass(frozen=True)
class StreakIncremented(Event):
    """Bonne réponse chez l'animateur ; les miroirs reçoivent la valeur absolue."""

    team_id: str


@dataclass(frozen=True)
class StreakSet(Event):
    command: ClassVar[Optional[str]] = "streak:update"
    notification: ClassVar[Optional[str]] = "streak:updated"

    team_id: str
    streak: int

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        return cls(team_id=str(data.get("teamId") or ""), streak=max(0, as_int(data.get("streak"))))

    def payload(self) -> Optional[Dict[str, Any]]:
        return {"teamId": self.team_id, "streak": self.streak}


# Audio


@dataclass(frozen=True)
class AudioPlayed(Event):
    command: ClassVar[Optional[str]] = "audio:play"
    notification: ClassVar[Optional[str]] = "audio:play"


@dataclass(frozen=True)
class AudioPaused(Event):
    command: ClassVar[Optional[str]] = "audio:pause"
    notification: ClassVar[Optional[str]] = "audio:pause"


@dataclass(frozen=True)
class AudioSeeked(Event):
    command: ClassVar[Optional[str]] = "audio:seek"
    notification: ClassVar[Optional[str]] = "audio:seek"

    time: float = 0.0

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional[Event]:
        return cls(time=max(0.0, as_float(data.get("time"))))

    def payload(self) -> Optional[Dict[str, Any]]:
        return {"time": self.time}


# Cycle de vie


@dataclass(frozen=True)
class SnapshotLoaded(Event):
    snapshot: Mapping[str, Any]


@dataclass(frozen=True)
class GameResetAll(Event):
    command: ClassVar[Optional[str]] = "game:reset_all"
    notification: ClassVar[Optional[str]] = "game:reset_all"


INBOUND: Dict[str, Type[Event]] = {
    cls.notification: cls  # type: ignore[misc]
    for cls in (
        TeamRegistered,
        TeamRemoved,
        TeamDisconnected,
        BuzzerPressed,
        BuzzerCleared,
        BuzzerReset,
        RoundChanged,
        QuestionRevealed,
        QuestionHidden,
        QuestionCleared,
        AnswerRevealed,
        AnswerHidden,
        QuestionCompleted,
        QuestionUncompleted,
        ScoreUpdated,
        ScoreSet,
        StreakSet,
        SpecialRevealed,
        SpecialHidden,
        AudioPlayed,
        AudioPaused,
        AudioSeeked,
        GameResetAll,
    )
}


def parse_event(name: str, data: Any = None) -> Optional[Event]:
    """Transforme une notification du relais en événement typé.

    Ne lève jamais : un nom inconnu ou un payload inexploitable donne None.
    """
    cls = INBOUND.get(name)
    if cls is None:
        return None
    return cls.from_payload(as_mapping(data))
