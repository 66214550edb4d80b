"""Lecture du catalogue de questions (manches -> catégories -> questions).

Le catalogue est une donnée externe en lecture seule : il n'est ni validé ni
versionné, on n'en lit que ce dont le jeu a besoin.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .state import as_int

logger = logging.getLogger("buzzboard.questions")

DOUBLE_POINT = "doublePoint"


@dataclass(frozen=True)
class Content:
    type: str = "text"
    content: Optional[str] = None
    media_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Content":
        if not isinstance(data, Mapping):
            return cls()
        content = data.get("content")
        media = data.get("mediaUrl")
        return cls(
            type=str(data.get("type") or "text"),
            content=None if content is None else str(content),
            media_url=None if media is None else str(media),
        )


@dataclass(frozen=True)
class Question:
    id: str
    points: int = 0
    type: str = "regular"
    special_type: Optional[str] = None
    special_config: Optional[Dict[str, Any]] = None
    question: Content = field(default_factory=Content)
    answer: Content = field(default_factory=Content)

    @property
    def is_special(self) -> bool:
        return self.type == "special"

    @property
    def award_points(self) -> int:
        """Points attribués à l'équipe gagnante (doublés pour une carte doublePoint)."""
        if self.is_special and self.special_type == DOUBLE_POINT:
            return self.points * 2
        return self.points

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Question":
        config = data.get("specialConfig")
        special_type = data.get("specialType")
        return cls(
            id=str(data.get("id")),
            points=as_int(data.get("points")),
            type=str(data.get("type") or "regular"),
            special_type=None if special_type is None else str(special_type),
            special_config=dict(config) if isinstance(config, Mapping) else None,
            question=Content.from_dict(data.get("question")),
            answer=Content.from_dict(data.get("answer")),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    questions: List[Question] = field(default_factory=list)

    def question(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


@dataclass(frozen=True)
class Round:
    number: int
    name: str = ""
    categories: List[Category] = field(default_factory=list)

    def category(self, category_id: str) -> Optional[Category]:
        for c in self.categories:
            if c.id == category_id:
                return c
        return None


@dataclass
class QuestionBank:
    rounds: List[Round] = field(default_factory=list)
    avatars: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    def round(self, number: int) -> Optional[Round]:
        for r in self.rounds:
            if r.number == number:
                return r
        return None

    def find(self, round_number: int, category_id: str, question_id: str) -> Optional[Question]:
        r = self.round(round_number)
        category = r.category(category_id) if r else None
        return category.question(question_id) if category else None

    def avatar_id(self, image_url: str) -> str:
        """Identifiant d'avatar correspondant à une image, chaîne vide sinon."""
        for avatar in self.avatars:
            if avatar.get("imageUrl") == image_url:
                return str(avatar.get("id") or "")
        return ""

    @classmethod
    def from_dict(cls, data: Any) -> "QuestionBank":
        if not isinstance(data, Mapping):
            return cls()
        rounds: List[Round] = []
        for r in data.get("rounds") or []:
            if not isinstance(r, Mapping):
                continue
            categories = [
                Category(
                    id=str(c.get("id")),
                    name=str(c.get("name") or ""),
                    questions=[Question.from_dict(q) for q in c.get("questions") or [] if isinstance(q, Mapping)],
                )
                for c in r.get("categories") or []
                if isinstance(c, Mapping)
            ]
            rounds.append(
                Round(number=as_int(r.get("roundNumber"), 1), name=str(r.get("name") or ""), categories=categories)
            )
        avatars = [a for a in data.get("avatars") or [] if isinstance(a, Mapping)]
        return cls(rounds=rounds, avatars=[dict(a) for a in avatars], raw=dict(data))


def load_question_bank(json_path: Union[str, Path]) -> QuestionBank:
    """Charge le fichier JSON du catalogue ; catalogue vide si illisible."""
    try:
        with open(json_path, encoding="utf-8") as f:
            return QuestionBank.from_dict(json.load(f))
    except (OSError, ValueError) as e:
        logger.error("Erreur lors du chargement des questions %s: %s", json_path, e)
        return QuestionBank()
