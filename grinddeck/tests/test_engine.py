"""
Tests for the GameEngine facade.

Tests:
- Starting, resetting and restarting games
- Commit-on-success semantics
- High score and difficulty persistence
- Match history hand-off (exactly once)
- Every generated legal action is accepted
"""

import pytest

from ..engine_core.cards import Card, Difficulty
from ..engine_core.engine import GameEngine
from ..engine_core.errors import IllegalMoveError
from ..engine_core.state import EndReason, GamePhase, SoloMode, TargetDeck
from ..storage import DIFFICULTY_KEY, HIGH_SCORE_KEY, MatchHistory
from .conftest import start_engine_with_hand


def _basic_hand():
    return [
        Card.number(5, card_id="n5"),
        Card.number(3, card_id="n3"),
        Card.number(2, card_id="n2"),
        Card.arithmetic("+", card_id="add"),
        Card.arithmetic("÷", card_id="div"),
        Card.arithmetic("×", card_id="mul"),
        Card.zero(card_id="zero"),
    ]


class TestStartGame:

    def test_start_deals_balanced_hand(self, engine):
        state = engine.start_game("basic")

        assert state.phase == GamePhase.PLAYING
        assert len(engine.hand) >= 7
        assert any(c.is_number_like for c in engine.hand)
        assert engine.grind_value is None
        assert engine.algebra_function_text == "x"
        assert engine.solo_mode == SoloMode.UNLIMITED

    def test_seeded_engines_deal_same_hand(self, kv_store, history, clock):
        labels = []
        for _ in range(2):
            engine = GameEngine(kv_store=kv_store, history=history, clock=clock, random_seed=7)
            engine.start_game("functions")
            labels.append([c.label for c in engine.hand])
        assert labels[0] == labels[1]

    def test_difficulty_remembered(self, engine, kv_store, history, clock):
        engine.start_game("negative")
        assert kv_store.get(DIFFICULTY_KEY) == "negative"

        other = GameEngine(kv_store=kv_store, history=history, clock=clock)
        other.start_game()
        assert other.difficulty == Difficulty.NEGATIVE

    def test_default_difficulty_is_basic(self, engine):
        engine.start_game()
        assert engine.difficulty == Difficulty.BASIC

    def test_invalid_arguments(self, engine):
        with pytest.raises(ValueError):
            engine.start_game("impossible")
        with pytest.raises(ValueError):
            engine.start_game("basic", "deck_limited", -1)
        assert not engine.is_started

    def test_limited_mode_defaults(self, engine):
        engine.start_game("basic", "time_limited")
        assert engine.remaining_time() == 300
        assert engine.remaining_cards() is None


class TestCommands:

    def test_commands_before_start_rejected(self, engine):
        result = engine.draw_card()
        assert not result.success
        assert result.error == "Game not started"
        assert engine.legal_actions() == []
        assert engine.tick() is None

    def test_queries_before_start_raise(self, engine):
        with pytest.raises(IllegalMoveError):
            engine.hand

    def test_play_commits_state(self, engine):
        start_engine_with_hand(engine, _basic_hand())

        assert engine.play_number_card("n5").success
        assert engine.play_arithmetic_card("add", "n3").success

        assert engine.grind_value == 8
        assert engine.current_score == 8
        assert engine.cards_played == 2
        assert [m.description for m in engine.moves] == ["Started with 5", "5 + 3 = 8"]

    def test_moves_timestamped_by_clock(self, engine, clock):
        start_engine_with_hand(engine, _basic_hand())
        clock.advance(4)
        engine.play_number_card("n5")
        assert engine.moves[-1].timestamp == 1_004.0

    def test_rejected_move_changes_nothing(self, engine):
        start_engine_with_hand(engine, _basic_hand())
        engine.play_number_card("n5")
        before = engine.state

        result = engine.play_arithmetic_card("div", "zero")

        assert result.error_code == "DIVISION_BY_ZERO"
        assert engine.state is before

    def test_select_card_flow(self, engine):
        start_engine_with_hand(engine, _basic_hand())
        engine.select_card("n5")
        engine.select_card("mul")
        assert engine.pending_card_id == "mul"

        engine.select_card("n2")
        assert engine.grind_value == 10
        assert engine.pending_card_id is None

    def test_algebra_flow(self, engine):
        start_engine_with_hand(
            engine,
            [
                Card.number(4, card_id="n4"),
                Card.variable(card_id="var"),
                Card.arithmetic("×", card_id="mul"),
                Card.arithmetic("+", card_id="add"),
                Card.number(3, card_id="n3"),
                Card.number(1, card_id="n1"),
            ],
            difficulty="algebra",
        )
        engine.play_number_card("n4")
        engine.play_variable_card("var")
        assert engine.algebra_active
        assert engine.active_target == TargetDeck.ALGEBRA

        engine.play_arithmetic_card("mul", "n3")
        engine.play_arithmetic_card("add", "n1")
        assert engine.algebra_function_text == "((x * 3) + 1)"
        assert len(engine.algebra_cards) == 5

        assert engine.apply_algebra_function().success
        assert engine.grind_value == 13
        assert not engine.algebra_active
        assert engine.active_target == TargetDeck.GRIND

    def test_set_target_accepts_strings(self, engine):
        start_engine_with_hand(engine, _basic_hand())
        assert engine.set_active_target_deck("grind").success
        assert engine.active_target == TargetDeck.GRIND


class TestPersistence:

    def test_high_score_persisted(self, engine, kv_store, history, clock):
        start_engine_with_hand(engine, _basic_hand())
        engine.play_number_card("n5")
        engine.play_arithmetic_card("mul", "n3")

        assert kv_store.get(HIGH_SCORE_KEY) == 15

        other = GameEngine(kv_store=kv_store, history=history, clock=clock)
        assert other.high_score == 15
        assert other.start_game("basic").high_score == 15

    def test_high_score_never_lowered(self, engine, kv_store):
        kv_store.set(HIGH_SCORE_KEY, 500)
        start_engine_with_hand(engine, _basic_hand())
        engine.play_number_card("n5")
        engine.play_arithmetic_card("mul", "n3")

        assert kv_store.get(HIGH_SCORE_KEY) == 500
        assert engine.high_score == 500

    def test_history_recorded_once(self, engine, history, clock):
        start_engine_with_hand(engine, _basic_hand())
        engine.play_number_card("n5")
        clock.advance(12)

        assert engine.end_game().success
        assert not engine.end_game().success
        assert engine.tick() is None

        assert len(history) == 1
        summary = history.recent()[0]
        assert summary is engine.summary
        assert summary.end_reason == EndReason.MANUAL_END
        assert summary.time_played == 12
        assert summary.cards_played == 0
        assert summary.date == 1_012.0
        assert len(summary.moves) == 1

    def test_deck_limited_game_recorded(self, engine, history):
        start_engine_with_hand(engine, _basic_hand(), solo_mode="deck_limited", limit=2)
        engine.play_number_card("n5")
        assert engine.cards_played == 0
        assert not engine.is_game_over

        engine.play_arithmetic_card("add", "n3")

        assert engine.is_game_over
        assert engine.end_reason == EndReason.DECK_FINISHED
        assert history.recent()[0].deck_limit == 2
        assert history.recent()[0].cards_played == 2

    def test_history_failure_does_not_break_game(self, kv_store, clock):
        class FullDiskHistory(MatchHistory):
            def add(self, summary):
                raise OSError("disk full")

        engine = GameEngine(kv_store=kv_store, history=FullDiskHistory(), clock=clock)
        engine.start_game("basic")

        assert engine.end_game().success
        assert engine.summary is not None


class TestResetAndRestart:

    def test_reset_keeps_high_score(self, engine):
        start_engine_with_hand(engine, _basic_hand())
        engine.play_number_card("n5")
        engine.play_arithmetic_card("mul", "n3")

        engine.reset_game()

        assert not engine.is_started
        assert engine.high_score == 15

    def test_restart_without_game_raises(self, engine):
        with pytest.raises(IllegalMoveError):
            engine.restart_with_same_difficulty()

    def test_restart_reuses_settings(self, engine):
        first = engine.start_game("decimals", "deck_limited", 20)
        engine.end_game()

        second = engine.restart_with_same_difficulty()

        assert second.game_id != first.game_id
        assert second.difficulty == Difficulty.DECIMALS
        assert second.solo.mode == SoloMode.DECK_LIMITED
        assert second.solo.limit == 20
        assert not engine.is_game_over
        assert engine.summary is None


class TestLegalActions:

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_generated_actions_are_accepted(self, engine, difficulty):
        engine.start_game(difficulty)

        for _ in range(5):
            actions = engine.legal_actions()
            assert actions
            for action in actions:
                result = engine.reducer.apply(engine.state, action)
                assert result.success, f"{action.action_type}: {result.error}"

            # Advance with the first card play on offer
            play = next(a for a in actions if a.action_type.value.startswith("play_"))
            assert engine.dispatch(play).success
            if engine.is_game_over:
                break

    def test_no_actions_after_end(self, engine):
        engine.start_game("basic")
        engine.end_game()
        assert engine.legal_actions() == []
