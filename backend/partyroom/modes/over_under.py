"""Over/under: a round-based trivia mode on the same room substrate.

Each round one player (rotating through the connected players) gives a
numeric answer to a trivia prompt; everyone else votes whether the true
answer is over or under it. Stages advance on player input or on timers:
round-started -> voting -> round-end -> next round or game-over.
"""

import logging
import time
from typing import Dict, Optional, Set

from ..errors import (
    ALREADY_VOTED, ANSWER_ALREADY_SUBMITTED, ANSWERER_CANNOT_VOTE, GameError, NOT_ANSWERER,
    VOTING_CLOSED, WRONG_PHASE,
)
from ..events import SubmitAnswerEvent, SubmitVoteEvent
from ..questions import QUESTIONS
from ..services.scoring import final_standings, score_current_round
from .base import ActionResult, GameMode, StageTimer

logger = logging.getLogger(__name__)

STAGE_ANSWERING = 'round-started'
STAGE_VOTING = 'voting'
STAGE_RESULTS = 'round-end'


class OverUnderMode(GameMode):
    name = 'over-under'

    def __init__(self, roster, settings, rng=None, questions=None):
        super().__init__(roster, settings, rng)
        self.questions = questions or QUESTIONS
        self.round_number = 0
        self.total_rounds = 0
        self.rounds_completed = 0
        self.answerer_id: Optional[str] = None
        self.question: Optional[dict] = None
        self.answer = None
        self.votes: Dict[str, str] = {}
        self.scores: Dict[str, int] = {}
        self.round_results = []
        self.used_questions: Set[str] = set()
        self.stage_deadline: Optional[float] = None

    def start(self) -> ActionResult:
        players = self.roster.connected()
        self.total_rounds = len(players)  # one round per player
        self.rounds_completed = 0
        self.round_results = []
        self.used_questions = set()
        self.scores = {p.id: 0 for p in self.roster.all()}
        for p in self.roster.all():
            p.score = 0
        result = self._start_round()
        result.event = 'game_started'
        result.data['totalRounds'] = self.total_rounds
        return result

    def handlers(self):
        return {
            SubmitAnswerEvent: lambda player_id, event: self.submit_answer(player_id, event.answer),
            SubmitVoteEvent: lambda player_id, event: self.submit_vote(player_id, event.vote),
        }

    # ---- actions ----

    def submit_answer(self, player_id: str, answer) -> ActionResult:
        if player_id != self.answerer_id:
            raise GameError(NOT_ANSWERER, 'You are not the answerer for this round')
        if self.phase == STAGE_VOTING:
            raise GameError(ANSWER_ALREADY_SUBMITTED, 'Answer already submitted')
        if self.phase != STAGE_ANSWERING:
            raise GameError(WRONG_PHASE, f"Answers are closed ({self.phase})")
        self.answer = answer
        self.phase = STAGE_VOTING
        duration = self.settings.voting_duration_sec
        self.stage_deadline = time.time() + duration
        answerer = self.roster.get(player_id)
        logger.info(f"[answer] round={self.round_number} player={answerer.name} answer={answer}")
        return ActionResult(
            'answer_submitted',
            player_id,
            data={'answererName': answerer.name, 'answer': answer, 'question': self.question['question']},
            timer=StageTimer(STAGE_VOTING, self.round_number, duration),
        )

    def submit_vote(self, player_id: str, vote: str) -> ActionResult:
        if player_id == self.answerer_id:
            raise GameError(ANSWERER_CANNOT_VOTE, 'Answerer cannot vote')
        if self.phase != STAGE_VOTING:
            raise GameError(VOTING_CLOSED, 'Voting is not currently active')
        player = self.roster.require(player_id)
        if player_id in self.votes:
            raise GameError(ALREADY_VOTED, 'You already voted this round')
        self.votes[player_id] = vote
        if self.all_votes_in():
            logger.info(f"[votes-complete] round={self.round_number} closing voting early")
            return self._resolve_round()
        return ActionResult('vote_submitted', player_id, data={
            'playerName': player.name,
            'votesSubmitted': len(self.votes),
            'totalVotesNeeded': len(self._voters()),
        })

    # ---- stage machine ----

    def on_timer(self, stage: str) -> Optional[ActionResult]:
        if stage != self.phase:
            return None
        if stage in (STAGE_ANSWERING, STAGE_VOTING):
            return self._resolve_round()
        if stage == STAGE_RESULTS:
            if self.rounds_completed >= self.total_rounds or not self.roster.connected():
                return self._finish()
            return self._start_round()
        return None

    def _start_round(self) -> ActionResult:
        players = self.roster.connected()
        answerer = players[self.rounds_completed % len(players)]
        available = [q for q in self.questions if q['question'] not in self.used_questions]
        if not available:
            self.used_questions.clear()
            available = list(self.questions)
        self.question = self.rng.choice(available)
        self.used_questions.add(self.question['question'])

        self.round_number = self.rounds_completed + 1
        self.answerer_id = answerer.id
        self.answer = None
        self.votes = {}
        self.phase = STAGE_ANSWERING
        duration = self.settings.answer_duration_sec
        self.stage_deadline = time.time() + duration
        logger.info(f"[round-start] round={self.round_number}/{self.total_rounds} answerer={answerer.name}")
        return ActionResult(
            'round_started',
            data={
                'roundNumber': self.round_number,
                'question': self.question['question'],
                'answererName': answerer.name,
                'answererId': answerer.id,
            },
            timer=StageTimer(STAGE_ANSWERING, self.round_number, duration),
        )

    def _resolve_round(self) -> ActionResult:
        results = score_current_round(self)
        self.rounds_completed += 1
        self.phase = STAGE_RESULTS
        duration = self.settings.results_duration_sec
        self.stage_deadline = time.time() + duration
        game_complete = self.rounds_completed >= self.total_rounds
        return ActionResult(
            'round_ended',
            data={'results': results, 'scores': self.score_board(), 'gameComplete': game_complete},
            timer=StageTimer(STAGE_RESULTS, self.round_number, duration),
        )

    def _finish(self) -> ActionResult:
        self.phase = 'game-over'
        self.stage_deadline = None
        standings = final_standings(self)
        logger.info(f"[game-over] mode={self.name} winner={standings[0]['playerName'] if standings else None}")
        return ActionResult('game_over', data={
            'winner': standings[0] if standings else None,
            'finalScores': standings,
            'roundHistory': self.round_results,
        })

    # ---- hooks ----

    def on_player_disconnected(self, player_id: str) -> Optional[ActionResult]:
        if self.phase == STAGE_ANSWERING and player_id == self.answerer_id:
            return self._resolve_round()
        if self.phase == STAGE_VOTING and self.all_votes_in():
            return self._resolve_round()
        return None

    def on_player_reconnected(self, old_id: str, new_id: str) -> None:
        if self.answerer_id == old_id:
            self.answerer_id = new_id
        if old_id in self.votes:
            self.votes[new_id] = self.votes.pop(old_id)
        if old_id in self.scores:
            self.scores[new_id] = self.scores.pop(old_id)

    # ---- queries ----

    def _voters(self):
        return [p for p in self.roster.connected() if p.id != self.answerer_id]

    def all_votes_in(self) -> bool:
        return all(p.id in self.votes for p in self._voters())

    def score_board(self):
        board = []
        for p in self.roster.all():
            board.append({
                'playerId': p.id,
                'playerName': p.name,
                'playerColor': p.color,
                'score': self.scores.get(p.id, 0),
            })
        return board

    def standings(self):
        return final_standings(self)

    def public_view(self):
        answerer = self.roster.get(self.answerer_id) if self.answerer_id else None
        showing_results = self.phase in (STAGE_RESULTS, 'game-over') and self.round_results
        return {
            'currentRound': self.round_number,
            'totalRounds': self.total_rounds,
            'roundsCompleted': self.rounds_completed,
            'question': self.question['question'] if self.question else None,
            'category': self.question.get('category') if self.question else None,
            'answerer': answerer.name if answerer else None,
            'answererId': self.answerer_id,
            'playerAnswer': self.answer,
            'isVotingActive': self.phase == STAGE_VOTING,
            'votesSubmitted': len(self.votes),
            'totalVotesNeeded': len(self._voters()),
            'stageDeadline': self.stage_deadline,
            'scores': self.score_board(),
            'lastRoundResult': self.round_results[-1] if showing_results else None,
            'finalScores': final_standings(self) if self.phase == 'game-over' else None,
        }

    def private_view(self, player_id: str):
        return {
            'isAnswerer': self.phase == STAGE_ANSWERING and player_id == self.answerer_id,
            'canVote': (self.phase == STAGE_VOTING and player_id != self.answerer_id
                        and player_id not in self.votes),
            'myVote': self.votes.get(player_id),
            'myScore': self.scores.get(player_id, 0),
        }
