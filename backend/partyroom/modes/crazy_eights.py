"""Crazy eights: the turn-based card game played on the shared screen.

Rules:
- a card is playable if it is wild (an 8), matches the current color, or
  matches the rank of the last played card
- a non-wild play sets the current color and passes the turn to the next
  connected player
- a wild play keeps the turn with its player until they choose a color;
  nobody may play or draw meanwhile
- a player may only draw without a playable card; a playable drawn card
  keeps the turn, otherwise the turn passes
- emptying a hand starts the winner sequence at once, skipping the color
  choice when the winning card is wild
"""

import logging
from typing import List, Optional

from ..cards import (
    COLORS, Card, build_deck, draw_start_card, has_legal_play, is_legal_play, shuffle_deck,
)
from ..errors import (
    CARD_NOT_IN_HAND, COLOR_CHOICE_PENDING, GameError, ILLEGAL_PLAY, INVALID_COLOR, MUST_PLAY,
    NO_COLOR_CHOICE_PENDING, NOT_YOUR_TURN, WRONG_PHASE,
)
from ..events import ChooseColorEvent, DrawCardEvent, PlayCardEvent
from ..locks import REASON_ANIMATION, REASON_FIRST_FLIP, REASON_WINNER
from .base import ActionResult, GameMode, LockRequest

logger = logging.getLogger(__name__)


class CrazyEightsMode(GameMode):
    name = 'crazy-eights'

    def __init__(self, roster, settings, rng=None):
        super().__init__(roster, settings, rng)
        self.deck: List[Card] = []
        self.discard: List[Card] = []
        self.last_played_card: Optional[Card] = None
        self.current_player_id: Optional[str] = None
        self.current_color: Optional[str] = None
        self.pending_color_choice = False
        self.pending_color_player_id: Optional[str] = None
        self.winner_id: Optional[str] = None
        self.winning_eight = False
        # Turn advance after a wild waits for the display's animation
        self._awaiting_animation = False
        self._deferred_advance = False

    # ---- lifecycle ----

    def start(self) -> ActionResult:
        players = self.roster.connected()
        for p in self.roster.all():
            p.hand = []
        deck = shuffle_deck(build_deck(), self.rng)
        hand_size = min(self.settings.hand_size, (len(deck) - 1) // len(players))
        for _ in range(hand_size):
            for p in players:
                p.hand.append(deck.pop())
        start_card = draw_start_card(deck)

        self.deck = deck
        self.discard = [start_card]
        self.last_played_card = start_card
        self.current_color = start_card.color
        self.current_player_id = players[0].id
        self.pending_color_choice = False
        self.pending_color_player_id = None
        self.winner_id = None
        self.winning_eight = False
        self._awaiting_animation = False
        self._deferred_advance = False
        self.phase = 'playing'

        logger.info(
            f"[game-start] mode={self.name} players={len(players)} hand={hand_size} start={start_card}"
        )
        lock = None
        if self.settings.first_flip_animation_ms > 0:
            lock = LockRequest(REASON_FIRST_FLIP, self.settings.first_flip_animation_ms)
        return ActionResult('game_started', data={'startCard': start_card.to_dict()}, lock=lock)

    def handlers(self):
        return {
            PlayCardEvent: self._on_play_card,
            DrawCardEvent: lambda player_id, _event: self.draw_card(player_id),
            ChooseColorEvent: lambda player_id, event: self.choose_color(player_id, event.color),
        }

    def allowed_while_locked(self, player_id: str, action) -> bool:
        if isinstance(action, ChooseColorEvent):
            return self.pending_color_choice
        return isinstance(action, PlayCardEvent) and self._completes_pending_wild(player_id, action)

    # ---- actions ----

    def _on_play_card(self, player_id: str, event: PlayCardEvent) -> ActionResult:
        if self._completes_pending_wild(player_id, event):
            return self.choose_color(player_id, event.chosen_color)
        result = self.play_card(player_id, event.card.to_card())
        if event.chosen_color and self.pending_color_choice:
            result.followups.append(self.choose_color(player_id, event.chosen_color))
            result.data['chosenColor'] = event.chosen_color
        return result

    def _completes_pending_wild(self, player_id: str, event: PlayCardEvent) -> bool:
        """A play that re-sends the pending wild card together with its color."""
        return (
            self.pending_color_choice
            and event.chosen_color is not None
            and player_id == self.pending_color_player_id
            and event.card.to_card() == self.last_played_card
        )

    def play_card(self, player_id: str, card: Card) -> ActionResult:
        self._require_playing()
        if self.pending_color_choice:
            raise GameError(COLOR_CHOICE_PENDING, 'A color must be chosen first')
        player = self._require_turn(player_id)
        if card not in player.hand:
            raise GameError(CARD_NOT_IN_HAND, f"You don't have {card}")
        if not is_legal_play(card, self.current_color, self.last_played_card):
            raise GameError(ILLEGAL_PLAY, f"{card} doesn't match {self.current_color} or {self.last_played_card.rank}")

        player.hand.remove(card)
        self.discard.append(card)
        self.last_played_card = card
        result = ActionResult('card_played', player_id, data={'playerName': player.name, 'card': card.to_dict()})
        logger.info(f"[card-played] player={player.name} card={card} left={player.card_count}")

        if not player.hand:
            self.winner_id = player_id
            self.winning_eight = card.is_wild
            if not card.is_wild:
                self.current_color = card.color
            self.phase = 'winner-animation'
            result.data['winningEight'] = self.winning_eight
            result.winner_id = player_id
            # A zero-length lock still arms the fallback that ends the game
            result.lock = LockRequest(REASON_WINNER, max(self.settings.winner_animation_ms, 0))
            logger.info(f"[winner] player={player.name} winning_eight={self.winning_eight}")
            return result

        if card.is_wild:
            self.pending_color_choice = True
            self.pending_color_player_id = player_id
            if self.settings.wild_animation_ms > 0:
                self._awaiting_animation = True
                result.lock = LockRequest(REASON_ANIMATION, self.settings.wild_animation_ms)
        else:
            self.current_color = card.color
            self._advance_turn()
        return result

    def choose_color(self, player_id: str, color: str) -> ActionResult:
        self._require_playing()
        if not self.pending_color_choice:
            raise GameError(NO_COLOR_CHOICE_PENDING, 'There is no color to choose')
        if player_id != self.pending_color_player_id:
            raise GameError(NOT_YOUR_TURN, 'Only the player who played the 8 chooses the color')
        if color not in COLORS:
            raise GameError(INVALID_COLOR, f"Color must be one of {', '.join(COLORS)}")
        self.current_color = color
        self.pending_color_choice = False
        self.pending_color_player_id = None
        if self._awaiting_animation:
            self._deferred_advance = True
        else:
            self._advance_turn()
        player = self.roster.get(player_id)
        return ActionResult('color_chosen', player_id, data={'playerName': player.name, 'color': color})

    def draw_card(self, player_id: str) -> ActionResult:
        self._require_playing()
        if self.pending_color_choice:
            raise GameError(COLOR_CHOICE_PENDING, 'A color must be chosen first')
        player = self._require_turn(player_id)
        if has_legal_play(player.hand, self.current_color, self.last_played_card):
            raise GameError(MUST_PLAY, 'You have a card you can play')

        if not self.deck:
            self._reshuffle_discard()
        data = {'playerName': player.name, 'forcedPass': False}
        if not self.deck:
            # Every card is in someone's hand: the turn passes without a draw
            data.update(forcedPass=True, turnPassed=True)
            self._advance_turn()
            logger.info(f"[forced-pass] player={player.name} deck and discard exhausted")
            return ActionResult('card_drawn', player_id, data=data)

        card = self.deck.pop()
        player.hand.append(card)
        playable = is_legal_play(card, self.current_color, self.last_played_card)
        if not playable:
            self._advance_turn()
        data['turnPassed'] = not playable
        return ActionResult('card_drawn', player_id, data=data)

    # ---- hooks ----

    def on_animation_released(self) -> None:
        self._awaiting_animation = False
        if self._deferred_advance and self.phase == 'playing':
            self._deferred_advance = False
            self._advance_turn()

    def on_winner_sequence_complete(self) -> None:
        if self.phase == 'winner-animation':
            self.phase = 'game-over'

    def on_player_disconnected(self, player_id: str) -> Optional[ActionResult]:
        if self.phase != 'playing':
            return None
        result = None
        if self.pending_color_choice and self.pending_color_player_id == player_id:
            # Nobody else may choose; settle on the wild card's printed color
            result = self.choose_color(player_id, self.last_played_card.color)
            result.data['automatic'] = True
        if self.current_player_id == player_id:
            # A disconnected seat never holds the turn, animation or not
            self._deferred_advance = False
            self._advance_turn()
        return result

    def on_player_reconnected(self, old_id: str, new_id: str) -> None:
        for attr in ('current_player_id', 'pending_color_player_id', 'winner_id'):
            if getattr(self, attr) == old_id:
                setattr(self, attr, new_id)

    # ---- queries ----

    @property
    def current_player_index(self) -> int:
        ids = [p.id for p in self.roster.connected()]
        return ids.index(self.current_player_id) if self.current_player_id in ids else -1

    def total_cards(self) -> int:
        return len(self.deck) + len(self.discard) + sum(p.card_count for p in self.roster.all())

    def public_view(self):
        current = self.roster.get(self.current_player_id) if self.current_player_id else None
        winner = self.roster.get(self.winner_id) if self.winner_id else None
        return {
            'currentPlayerName': current.name if current else None,
            'currentPlayerIndex': self.current_player_index,
            'lastPlayedCard': self.last_played_card.to_dict() if self.last_played_card else None,
            'currentColor': self.current_color,
            'deckCount': len(self.deck),
            'discardCount': len(self.discard),
            'pendingColorChoice': self.pending_color_choice,
            'winner': winner.name if winner else None,
            'winningEight': self.winning_eight,
        }

    def private_view(self, player_id: str):
        player = self.roster.get(player_id)
        if player is None:
            return {}
        my_turn = self.phase == 'playing' and self.current_player_id == player_id
        return {
            'myHand': [c.to_dict() for c in player.hand],
            'isMyTurn': my_turn,
            'mustChooseColor': self.pending_color_choice and self.pending_color_player_id == player_id,
            'canDraw': my_turn and not self.pending_color_choice and not has_legal_play(
                player.hand, self.current_color, self.last_played_card),
        }

    # ---- internals ----

    def _require_playing(self) -> None:
        if self.phase != 'playing':
            raise GameError(WRONG_PHASE, f"Game is not in play ({self.phase})")

    def _require_turn(self, player_id: str):
        player = self.roster.require(player_id)
        if self.current_player_id != player_id:
            raise GameError(NOT_YOUR_TURN, "It's not your turn")
        return player

    def _advance_turn(self) -> None:
        """Move to the next connected player in seat order."""
        seats = self.roster.all()
        ids = [p.id for p in seats]
        start = ids.index(self.current_player_id) if self.current_player_id in ids else -1
        for step in range(1, len(seats) + 1):
            candidate = seats[(start + step) % len(seats)]
            if candidate.connected:
                self.current_player_id = candidate.id
                return
        self.current_player_id = None

    def _reshuffle_discard(self) -> None:
        """Turn the discard pile, minus its top card, into a fresh deck."""
        top = self.discard.pop()
        self.deck = shuffle_deck(self.discard, self.rng)
        self.discard = [top]
        logger.info(f"[reshuffle] deck={len(self.deck)} top={top}")
