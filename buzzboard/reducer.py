"""Réducteurs purs : ``apply(state, event) -> (state, changed)``.

Tous les clients appliquent les mêmes réducteurs au même flux d'événements et
convergent vers le même état. Aucun réducteur ne lève : une référence
périmée (équipe supprimée, case inconnue) est un no-op.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Tuple, Type

from . import events as ev
from .state import GameState, Team, as_int, completion_key

logger = logging.getLogger("buzzboard.reducer")

Result = Tuple[GameState, bool]
Reducer = Callable[[GameState, Any], Result]

_REDUCERS: Dict[Type[ev.Event], Reducer] = {}


def reduces(*kinds: Type[ev.Event]) -> Callable[[Reducer], Reducer]:
    def decorator(fn: Reducer) -> Reducer:
        for kind in kinds:
            _REDUCERS[kind] = fn
        return fn

    return decorator


def apply(state: GameState, event: ev.Event) -> Result:
    reducer = _REDUCERS.get(type(event))
    if reducer is None:
        logger.debug("Aucun réducteur pour %s", type(event).__name__)
        return state, False
    return reducer(state, event)


def _changed(state: GameState, new_state: GameState) -> Result:
    if new_state == state:
        return state, False
    return new_state, True


def _map_team(state: GameState, team_id: str, fn: Callable[[Team], Team]) -> Result:
    if not state.has_team(team_id):
        return state, False
    teams = tuple(fn(t) if t.id == team_id else t for t in state.teams)
    return _changed(state, replace(state, teams=teams))


def _add_key(keys: Tuple[str, ...], key: str) -> Tuple[str, ...]:
    return keys if key in keys else keys + (key,)


def _remove_key(keys: Tuple[str, ...], key: str) -> Tuple[str, ...]:
    return tuple(k for k in keys if k != key)


# Equipes


@reduces(ev.TeamRegistered, ev.TeamRejoined)
def team_registered(state: GameState, event: ev.TeamRegistered) -> Result:
    # Ne jamais écraser une fiche locale : la première version connue gagne
    if state.has_team(event.team.id):
        return state, False
    return replace(state, teams=state.teams + (event.team,)), True


@reduces(ev.TeamRemoved)
def team_removed(state: GameState, event: ev.TeamRemoved) -> Result:
    if not state.has_team(event.team_id):
        return state, False
    new_state = replace(state, teams=tuple(t for t in state.teams if t.id != event.team_id))
    if new_state.buzzer_team == event.team_id:
        new_state = replace(new_state, buzzer_locked=False, buzzer_team=None)
    return new_state, True


@reduces(ev.TeamDisconnected)
def team_disconnected(state: GameState, event: ev.TeamDisconnected) -> Result:
    # Une équipe survit à la perte de sa connexion, seul team:remove la retire
    return state, False


# Buzzer


@reduces(ev.BuzzerPressed)
def buzzer_pressed(state: GameState, event: ev.BuzzerPressed) -> Result:
    if state.buzzer_locked or not event.team_id:
        return state, False
    return replace(state, buzzer_locked=True, buzzer_team=event.team_id), True


@reduces(ev.BuzzerCleared, ev.BuzzerReset)
def buzzer_cleared(state: GameState, event: ev.Event) -> Result:
    return _changed(state, replace(state, buzzer_locked=False, buzzer_team=None))


# Manche


@reduces(ev.RoundChanged)
def round_changed(state: GameState, event: ev.RoundChanged) -> Result:
    return _changed(state, replace(state, current_round=event.round))


# Ecran


@reduces(ev.QuestionSelected)
def question_selected(state: GameState, event: ev.QuestionSelected) -> Result:
    return _changed(
        state,
        replace(
            state,
            selected_category=event.category_id,
            selected_question=event.question_id,
            current_question=event.question,
            current_answer=event.answer,
            question_type=event.question_type,
            question_media=event.question_media,
            answer_type=event.answer_type,
            answer_media=event.answer_media,
            revealed_question=False,
            revealed_answer=False,
        ),
    )


@reduces(ev.QuestionRevealed)
def question_revealed(state: GameState, event: ev.QuestionRevealed) -> Result:
    return _changed(
        state,
        replace(
            state,
            current_question=event.content,
            question_type=event.type,
            question_media=event.media_ref,
            revealed_question=True,
        ),
    )


@reduces(ev.QuestionHidden)
def question_hidden(state: GameState, event: ev.QuestionHidden) -> Result:
    return _changed(state, replace(state, revealed_question=False))


@reduces(ev.AnswerRevealed)
def answer_revealed(state: GameState, event: ev.AnswerRevealed) -> Result:
    # La réponse remplace la question à l'écran
    return _changed(
        state,
        replace(
            state,
            current_answer=event.content,
            answer_type=event.type,
            answer_media=event.media_ref,
            revealed_question=False,
            revealed_answer=True,
        ),
    )


@reduces(ev.AnswerHidden)
def answer_hidden(state: GameState, event: ev.AnswerHidden) -> Result:
    return _changed(state, replace(state, revealed_answer=False))


@reduces(ev.QuestionCleared)
def question_cleared(state: GameState, event: ev.QuestionCleared) -> Result:
    return _changed(
        state,
        replace(
            state,
            selected_category=None,
            selected_question=None,
            current_question=None,
            current_answer=None,
            question_type="text",
            question_media=None,
            answer_type="text",
            answer_media=None,
            revealed_question=False,
            revealed_answer=False,
        ),
    )


# Plateau


@reduces(ev.QuestionCompleted)
def question_completed(state: GameState, event: ev.QuestionCompleted) -> Result:
    key = completion_key(event.category_id, event.question_id)
    if key in state.completed_questions:
        return state, False
    return replace(state, completed_questions=state.completed_questions + (key,)), True


@reduces(ev.QuestionUncompleted)
def question_uncompleted(state: GameState, event: ev.QuestionUncompleted) -> Result:
    key = completion_key(event.category_id, event.question_id)
    if key not in state.completed_questions:
        return state, False
    return replace(state, completed_questions=_remove_key(state.completed_questions, key)), True


@reduces(ev.SpecialRevealed)
def special_revealed(state: GameState, event: ev.SpecialRevealed) -> Result:
    key = completion_key(event.category_id, event.question_id)
    return _changed(
        state, replace(state, revealed_special_cards=_add_key(state.revealed_special_cards, key))
    )


@reduces(ev.SpecialHidden)
def special_hidden(state: GameState, event: ev.SpecialHidden) -> Result:
    key = completion_key(event.category_id, event.question_id)
    return _changed(
        state, replace(state, revealed_special_cards=_remove_key(state.revealed_special_cards, key))
    )


# Scores


@reduces(ev.ScoreUpdated)
def score_updated(state: GameState, event: ev.ScoreUpdated) -> Result:
    team = state.team(event.team_id)
    if team is None:
        return state, False
    if event.points is not None:
        delta = event.points
    elif event.new_score is not None:
        delta = event.new_score - team.score
    else:
        return state, False
    if delta == 0:
        return state, False
    return _map_team(state, team.id, lambda t: replace(t, score=t.score + delta))


@reduces(ev.ScoreSet)
def score_set(state: GameState, event: ev.ScoreSet) -> Result:
    return _map_team(state, event.team_id, lambda t: replace(t, score=event.score))


@reduces(ev.StreakIncremented)
def streak_incremented(state: GameState, event: ev.StreakIncremented) -> Result:
    return _map_team(state, event.team_id, lambda t: replace(t, streak=t.streak + 1))


@reduces(ev.StreakSet)
def streak_set(state: GameState, event: ev.StreakSet) -> Result:
    return _map_team(state, event.team_id, lambda t: replace(t, streak=event.streak))


# Audio


@reduces(ev.AudioPlayed)
def audio_played(state: GameState, event: ev.AudioPlayed) -> Result:
    return _changed(state, replace(state, audio_playing=True))


@reduces(ev.AudioPaused)
def audio_paused(state: GameState, event: ev.AudioPaused) -> Result:
    return _changed(state, replace(state, audio_playing=False))


@reduces(ev.AudioSeeked)
def audio_seeked(state: GameState, event: ev.AudioSeeked) -> Result:
    return _changed(state, replace(state, audio_position=event.time))


# Cycle de vie


@reduces(ev.SnapshotLoaded)
def snapshot_loaded(state: GameState, event: ev.SnapshotLoaded) -> Result:
    """Fusionne un snapshot persisté dans l'état local.

    - la manche vient du snapshot ;
    - une équipe n'est ajoutée que si son id est inconnu localement ;
    - les cases terminées sont unies, dans l'ordre du snapshot ;
    - le verrou du buzzer n'est restauré que si le buzzer local est libre et
      que l'équipe détentrice est connue.
    """
    snapshot: Mapping[str, Any] = event.snapshot
    new_state = state

    round_ = as_int(snapshot.get("currentRound"), 0)
    if round_ >= 1:
        new_state = replace(new_state, current_round=round_)

    teams = snapshot.get("teams")
    if isinstance(teams, list):
        for raw in teams:
            team = Team.from_payload(raw) if isinstance(raw, Mapping) else None
            if team is not None:
                new_state, _ = team_registered(new_state, ev.TeamRegistered(team=team))

    completed = snapshot.get("completedQuestions")
    if isinstance(completed, list):
        keys = new_state.completed_questions
        for key in completed:
            if isinstance(key, str) and key:
                keys = _add_key(keys, key)
        new_state = replace(new_state, completed_questions=keys)

    buzzer_team = snapshot.get("buzzerTeam")
    if (
        snapshot.get("buzzerLocked")
        and not new_state.buzzer_locked
        and isinstance(buzzer_team, str)
        and new_state.has_team(buzzer_team)
    ):
        new_state = replace(new_state, buzzer_locked=True, buzzer_team=buzzer_team)

    return _changed(state, new_state)


@reduces(ev.GameResetAll)
def game_reset_all(state: GameState, event: ev.GameResetAll) -> Result:
    return _changed(state, GameState())
