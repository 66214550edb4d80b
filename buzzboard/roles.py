"""Actions de l'animateur et des buzzers, exprimées en événements.

Chaque action applique d'abord sa mise à jour optimiste puis publie
l'événement au relais. Quand une case est attribuée à une équipe, le score
et la série partent avant l'événement de fin de case.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from . import events as ev
from .client import GameClient
from .questions import Question, QuestionBank
from .state import DEFAULT_AVATAR, DEFAULT_COLOR, GameState, Team

logger = logging.getLogger("buzzboard.roles")


class HostController:
    def __init__(self, client: GameClient, bank: QuestionBank) -> None:
        self.client = client
        self.bank = bank

    @property
    def state(self) -> GameState:
        return self.client.state

    def selected(self) -> Optional[Question]:
        s = self.state
        if s.selected_category is None or s.selected_question is None:
            return None
        return self.bank.find(s.current_round, s.selected_category, s.selected_question)

    # Manche et plateau

    async def change_round(self, round_number: int) -> None:
        await self.client.act(ev.RoundChanged(round=round_number))
        if self.bank.round(round_number):
            # Nouveau plateau : on lâche la case sélectionnée
            self.client.reduce_locally(ev.QuestionCleared())

    async def select_question(self, category_id: str, question_id: str) -> bool:
        question = self.bank.find(self.state.current_round, category_id, question_id)
        if question is None:
            return False
        already_done = self.state.is_completed(category_id, question_id)
        self.client.reduce_locally(
            ev.QuestionSelected(
                category_id=category_id,
                question_id=question_id,
                question=question.question.content,
                answer=question.answer.content,
                question_type=question.question.type,
                question_media=question.question.media_url,
                answer_type=question.answer.type,
                answer_media=question.answer.media_url,
            )
        )
        if not already_done:
            # Une case terminée n'est sélectionnée que pour être réattribuée
            await self.client.publish(ev.QuestionCleared())
        return True

    async def clear_screen(self) -> None:
        await self.client.act(ev.QuestionCleared())

    # Ecran

    async def reveal_question(self) -> bool:
        question = self.selected()
        if question is None:
            return False
        await self.client.act(
            ev.QuestionRevealed(
                content=question.question.content,
                type=question.question.type,
                media_ref=question.question.media_url,
            )
        )
        return True

    async def hide_question(self) -> None:
        await self.client.act(ev.QuestionHidden())

    async def reveal_answer(self) -> bool:
        question = self.selected()
        if question is None:
            return False
        await self.client.act(
            ev.AnswerRevealed(
                content=question.answer.content,
                type=question.answer.type,
                media_ref=question.answer.media_url,
            )
        )
        return True

    async def hide_answer(self) -> None:
        await self.client.act(ev.AnswerHidden())

    async def reveal_special(self) -> bool:
        question = self.selected()
        if question is None or not question.is_special:
            return False
        await self.client.act(
            ev.SpecialRevealed(
                category_id=self.state.selected_category or "",
                question_id=question.id,
                special_type=question.special_type or "",
                special_config=question.special_config,
            )
        )
        return True

    async def hide_special(self) -> bool:
        s = self.state
        if s.selected_category is None or s.selected_question is None:
            return False
        await self.client.act(ev.SpecialHidden(category_id=s.selected_category, question_id=s.selected_question))
        return True

    # Buzzer

    async def clear_buzzer(self) -> None:
        await self.client.act(ev.BuzzerCleared())

    async def reset_buzzer(self) -> None:
        await self.client.act(ev.BuzzerReset())

    # Attribution des points

    async def _award(self, team_id: str, question: Question) -> None:
        points = question.award_points
        team = self.state.team(team_id)
        new_score = (team.score if team else 0) + points
        await self.client.act(ev.ScoreUpdated(team_id=team_id, points=points, new_score=new_score))
        if self.client.reduce_locally(ev.StreakIncremented(team_id=team_id)):
            updated = self.state.team(team_id)
            if updated is not None:
                await self.client.publish(ev.StreakSet(team_id=team_id, streak=updated.streak))

    async def mark_correct(self) -> bool:
        team_id = self.state.buzzer_team
        question = self.selected()
        if not team_id or question is None:
            return False
        await self._award(team_id, question)
        await self.clear_buzzer()
        return await self.mark_complete()

    async def mark_incorrect(self) -> bool:
        team_id = self.state.buzzer_team
        if not team_id or self.selected() is None:
            return False
        if self.state.has_team(team_id):
            await self.client.act(ev.StreakSet(team_id=team_id, streak=0))
        await self.clear_buzzer()
        return True

    async def mark_complete(self, team_id: Optional[str] = None) -> bool:
        s = self.state
        category_id, question_id = s.selected_category, s.selected_question
        if category_id is None or question_id is None:
            return False
        question = self.selected()
        if team_id and question is not None:
            await self._award(team_id, question)
        await self.client.act(ev.QuestionCompleted(category_id=category_id, question_id=question_id))
        # L'écran est vidé après chaque case terminée
        await self.client.act(ev.QuestionCleared())
        return True

    async def unmark_complete(self, category_id: Optional[str] = None, question_id: Optional[str] = None) -> bool:
        category_id = category_id or self.state.selected_category
        question_id = question_id or self.state.selected_question
        if not category_id or not question_id:
            return False
        await self.client.act(ev.QuestionUncompleted(category_id=category_id, question_id=question_id))
        return True

    async def reassign(self, category_id: str, question_id: str, team_id: Optional[str] = None) -> bool:
        """Rouvre une case puis, si une équipe est donnée, la lui attribue.

        Deux mutations indépendantes : un client qui ne voit que la première
        est dans un état valide, simplement en retard.
        """
        await self.unmark_complete(category_id, question_id)
        if not team_id:
            return True
        question = self.bank.find(self.state.current_round, category_id, question_id)
        if question is None:
            return False
        await self._award(team_id, question)
        await self.client.act(ev.QuestionCompleted(category_id=category_id, question_id=question_id))
        return True

    # Equipes

    async def edit_score(self, team_id: str, score: int) -> None:
        await self.client.act(ev.ScoreSet(team_id=team_id, score=score))

    async def remove_team(self, team_id: str) -> None:
        await self.client.act(ev.TeamRemoved(team_id=team_id))

    # Audio

    async def play_audio(self) -> None:
        await self.client.act(ev.AudioPlayed())

    async def pause_audio(self) -> None:
        await self.client.act(ev.AudioPaused())

    async def seek_audio(self, seconds: float) -> None:
        await self.client.act(ev.AudioSeeked(time=max(0.0, seconds)))

    # Reset global

    async def reset_all(self) -> bool:
        if self.client.flusher:
            # Une écriture en attente remettrait l'ancienne partie dans le store
            await self.client.flusher.close()
        cleared = await asyncio.to_thread(self.client.store.clear)
        if not cleared:
            logger.error("Snapshot non vidé, reset global annulé")
            return False
        await self.client.publish(ev.GameResetAll())
        await self.client.reload()
        return True


class BuzzerController:
    def __init__(self, client: GameClient, bank: Optional[QuestionBank] = None) -> None:
        self.client = client
        self.bank = bank or QuestionBank()
        saved = client.identity.load() if client.identity else None
        self.team_id: Optional[str] = saved.get("id") if saved else None
        self.avatar_id = str(saved.get("avatarId") or "") if saved else ""
        self._remembered: Optional[Team] = None
        client.session.subscribe(self._on_change)

    @property
    def team(self) -> Optional[Team]:
        return self.client.state.team(self.team_id)

    def available_avatars(self) -> List[Dict[str, Any]]:
        taken = {t.avatar for t in self.client.state.teams}
        return [a for a in self.bank.avatars if a.get("imageUrl") not in taken]

    async def register(
        self,
        name: str,
        color: Optional[str] = None,
        avatar: Optional[str] = None,
        avatar_id: str = "",
    ) -> Optional[Team]:
        if not name.strip():
            return None
        team = Team(
            id=f"team-{int(time.time() * 1000)}",
            name=name.strip(),
            color=color or DEFAULT_COLOR,
            avatar=avatar or DEFAULT_AVATAR,
        )
        self._remember(team, avatar_id)
        await self.client.act(ev.TeamRegistered(team=team, avatar_id=avatar_id))
        return team

    async def select_existing(self, team_id: str) -> Optional[Team]:
        team = self.client.state.team(team_id)
        if team is None:
            return None
        avatar_id = self.bank.avatar_id(team.avatar)
        self._remember(team, avatar_id)
        await self.client.act(ev.TeamRegistered(team=team, avatar_id=avatar_id))
        return team

    async def press(self) -> bool:
        team = self.team
        if team is None or self.client.state.buzzer_locked:
            return False
        return await self.client.act(ev.BuzzerPressed(team_id=team.id, team_name=team.name))

    def forget(self) -> None:
        self.team_id = None
        self.avatar_id = ""
        if self.client.identity:
            self.client.identity.forget()

    def _remember(self, team: Team, avatar_id: str) -> None:
        self.team_id = team.id
        self._remembered = team
        self.avatar_id = avatar_id
        if self.client.identity:
            self.client.identity.save({**team.to_dict(), "avatarId": avatar_id})

    def _on_change(self, state: GameState, event: ev.Event) -> None:
        if self.team_id is None:
            return
        if isinstance(event, (ev.TeamRemoved, ev.GameResetAll)) and not state.has_team(self.team_id):
            self.team_id = None
            self.avatar_id = ""
            return
        team = state.team(self.team_id)
        if team is not None and team != self._remembered and self.client.identity:
            self._remembered = team
            # Garder la fiche mémorisée à jour (score, série) pour le prochain rejoin
            self.client.identity.save({**team.to_dict(), "avatarId": self.avatar_id})
