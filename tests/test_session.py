import logging
import random

import pytest

from game.torchchase.entities import PowerUpKind
from game.torchchase.scene import AudioSink, Scene
from game.torchchase.session import (
    TOGGLE_CENTER_MODE,
    TOGGLE_TORCH_DEBUG,
    EndReason,
    GameSession,
    Phase,
)


def texts(scene):
    return [m.text for m in scene.messages]


# ----------------------------
# Start / restart / exit
# ----------------------------

def test_start_spawns_initial_level(session, scene):
    registry = session.registry

    assert session.phase is Phase.PLAYING
    assert session.state.active
    assert (session.state.score, session.state.level, session.state.time_left) == (0, 1, 30)
    assert len(registry.coins) == 8
    assert len(registry.bombs) == 4
    assert len(registry.powerups) == 2
    assert len(registry.keys) == 1
    assert len(registry.decorations) == 58
    assert len(scene.items) == 73
    assert session.torch.base_radius == 170.0


def test_restart_resets_session(session):
    session.state.score = 500
    session.state.level = 4
    session.force_apply_torch_upgrade()
    session.powerups.activate(PowerUpKind.DOUBLE, 15, session.now)

    session.restart()

    assert session.state.score == 0
    assert session.state.level == 1
    assert session.torch.persistent_scale == 1.0
    assert not session.powerups.active
    assert len(session.registry.coins) == 8
    assert session.ui.score == 0


def test_restart_drops_pending_follow_ups(empty_session):
    game = empty_session
    coin = game.registry.spawn_coins(1)[0]
    game.collect_coin(coin)
    assert len(game.driver.scheduler) == 1

    game.restart()

    assert len(game.driver.scheduler) == 0


def test_restart_with_pointer_inside_keeps_collecting(session, at_cursor):
    session.pointer_entered()
    session.end_game(False, EndReason.BOMB)

    session.restart()
    session.registry.clear_all()
    session.pointer_moved(200.0, 150.0)
    at_cursor(session, session.registry.spawn_coins(1)[0])
    session.advance_frames(5)

    assert session.state.pointer_inside
    assert session.state.score == 10


def test_exit_respects_confirmation(session, scene):
    assert session.exit(confirm=lambda: False) is False
    assert session.phase is Phase.PLAYING

    assert session.exit(confirm=lambda: True) is True
    assert session.phase is Phase.IDLE
    assert not session.state.active
    assert session.registry.total() == 0
    assert scene.items == {}
    assert "Exited to main menu" in texts(scene)


def test_exited_session_no_longer_ticks(session):
    session.exit()
    time_left = session.state.time_left

    session.advance_frames(600)

    assert session.state.time_left == time_left
    assert session.phase is Phase.IDLE


# ----------------------------
# Coins
# ----------------------------

def test_coin_scores_and_refreshes_collect_time(empty_session):
    game = empty_session
    game.advance_frames(10)
    coin = game.registry.spawn_coins(1)[0]

    assert game.collect_coin(coin) == 10
    assert game.state.score == 10
    assert game.state.last_collect_time == game.now
    assert game.ui.score == 10


def test_double_points(empty_session):
    game = empty_session
    game.powerups.activate(PowerUpKind.DOUBLE, 15, game.now)
    coin = game.registry.spawn_coins(1)[0]

    assert game.collect_coin(coin) == 20
    assert game.state.score == 20


def test_coin_collected_at_most_once(empty_session):
    game = empty_session
    coin = game.registry.spawn_coins(1)[0]

    assert game.collect_coin(coin) == 10
    assert game.collect_coin(coin) == 0
    assert game.state.score == 10


def test_coin_respawns_after_half_a_second(empty_session):
    game = empty_session
    coin = game.registry.spawn_coins(1)[0]
    game.collect_coin(coin)
    assert game.registry.coins == []

    game.advance_frames(29)
    assert game.registry.coins == []

    game.advance_frames(1)
    assert len(game.registry.coins) == 1


def test_respawn_skipped_after_session_ended(empty_session):
    game = empty_session
    game.collect_coin(game.registry.spawn_coins(1)[0])
    game.end_game(False, EndReason.BOMB)

    game.advance_frames(60)

    assert game.registry.coins == []


def test_collecting_eight_coins_on_level_one(empty_session, at_cursor, audio):
    game = empty_session
    game.pointer_entered()

    for _ in range(8):
        at_cursor(game, game.registry.spawn_coins(1, level=1)[0])
        game.advance_frames(1)

    assert game.state.score == 80
    assert game.torch.persistent_scale == 1.0
    assert not game.torch.upgraded
    assert audio.chimes == []


def test_crossing_threshold_celebrates(empty_session, audio, scene):
    game = empty_session
    game.state.score = 390

    game.collect_coin(game.registry.spawn_coins(1)[0])

    assert game.state.score == 400
    assert audio.chimes == [1.1]
    assert "Torch expanded: 1.1x at 400 points!" in texts(scene)
    assert game.ui.torch_status_text == "Torch: 1.1x"


# ----------------------------
# Watchdog
# ----------------------------

def test_watchdog_ends_game_after_five_seconds_without_coins(session, scene):
    session.advance_frames(300)
    assert session.phase is Phase.PLAYING

    session.advance_frames(1)

    assert session.phase is Phase.ENDED
    assert session.state.end_reason is EndReason.NO_COIN
    assert "No coin collected for 5s! Game Over!" in texts(scene)


def test_watchdog_spared_by_level_key(session, scene):
    session.state.has_level_key = True

    session.advance_frames(301)

    assert session.phase is Phase.PLAYING
    assert session.state.last_collect_time == session.now
    assert "No coin for 5s, but your key saved you!" in texts(scene)


def test_watchdog_spared_by_active_powerup(session, scene):
    session.powerups.activate(PowerUpKind.SHIELD, 10, session.now)

    session.advance_frames(301)

    assert session.phase is Phase.PLAYING
    assert "No coin for 5s, but your active power-up saved you!" in texts(scene)


# ----------------------------
# Countdown / ending
# ----------------------------

def test_countdown_decrements_once_per_second(session):
    session.advance_frames(59)
    assert session.state.time_left == 30

    session.advance_frames(1)
    assert session.state.time_left == 29
    assert session.ui.time_left == 29


def test_time_running_out_ends_session(session, scene):
    session.state.time_left = 1
    session.state.score = 70

    session.advance_frames(60)

    assert session.phase is Phase.ENDED
    assert session.state.end_reason is EndReason.TIME
    assert session.state.final_score == 70
    assert "Time's up! You failed to find a key." in texts(scene)


def test_bomb_contact_ends_session(empty_session, at_cursor):
    game = empty_session
    at_cursor(game, game.registry.spawn_bombs(1)[0])
    game.pointer_entered()

    game.advance_frames(1)

    assert game.phase is Phase.ENDED
    assert game.state.end_reason is EndReason.BOMB
    assert game.state.end_message == "You hit a bomb! Game Over!"
    assert not game.driver.running


def test_end_game_is_idempotent(session):
    calls = []
    session.ui_listeners.append(calls.append)

    assert session.end_game(False, EndReason.BOMB) is True
    assert session.end_game(False, EndReason.TIME) is False

    assert len(calls) == 1
    assert session.state.end_reason is EndReason.BOMB


def test_winning_end(session):
    session.end_game(win=True)

    assert session.state.won
    assert session.state.end_reason is None
    assert session.state.end_message == "Congratulations! You completed all levels!"


def test_end_game_resets_torch_to_baseline(session, scene):
    session.force_apply_torch_upgrade()
    session.pointer_entered()

    session.end_game(False, EndReason.BOMB)

    assert not session.torch.upgraded
    assert session.torch.current == 1.0
    assert scene.torch.radius == 170
    assert scene.torch.upgraded is False
    assert scene.cursor is None
    assert session.ui.torch_status_text == "Torch: Normal"


def test_pointer_ignored_when_inactive(session):
    session.end_game(False, EndReason.BOMB)
    before = session.state.pointer

    session.pointer_moved(1.0, 1.0)

    assert session.state.pointer == before


# ----------------------------
# Levels
# ----------------------------

def test_complete_level_bonus_and_next_level(empty_session):
    game = empty_session
    game.state.level = 2
    game.state.time_left = 10
    game.registry.spawn_coins(3)

    bonus = game.complete_level()

    assert bonus == 315
    assert game.state.score == 315
    assert game.state.level == 3
    assert game.state.time_left == 40
    assert game.torch.base_radius == 150.0
    assert len(game.registry.coins) == 11
    assert len(game.registry.bombs) == 5
    assert len(game.registry.powerups) == 3
    assert len(game.registry.keys) == 1
    assert len(game.registry.decorations) == 65 + 11
    assert not game.state.has_level_key


def test_bonus_ignores_negative_time(empty_session):
    game = empty_session
    game.state.time_left = -3

    assert game.complete_level() == 100


def test_complete_level_noop_when_inactive(session):
    session.end_game(False, EndReason.BOMB)

    assert session.complete_level() == 0
    assert session.state.level == 1


def test_key_completes_level_and_pauses_countdown(empty_session, at_cursor):
    game = empty_session
    at_cursor(game, game.registry.spawn_keys(1)[0])
    game.pointer_entered()

    game.advance_frames(1)
    assert game.state.has_level_key
    # keep the fresh level's random entities out of the cursor's way
    game.pointer_left()

    game.advance_frames(29)
    assert game.state.level == 1

    game.advance_frames(1)
    assert game.state.level == 2
    assert game.state.time_left == 35
    assert not game.driver.countdown_running

    game.advance_frames(120)
    assert game.driver.countdown_running
    assert game.state.time_left == 35

    # the resume frame already counts toward the next second
    game.advance_frames(58)
    assert game.state.time_left == 35
    game.advance_frames(1)
    assert game.state.time_left == 34


def test_level_completion_cancelled_if_session_ends_first(empty_session):
    game = empty_session
    game.collect_key(game.registry.spawn_keys(1)[0])
    game.end_game(False, EndReason.BOMB)

    game.advance_frames(60)

    assert game.state.level == 1
    assert game.state.score == 0


# ----------------------------
# Power-ups
# ----------------------------

def test_time_powerup_pickup(empty_session, scene):
    game = empty_session
    powerup = game.registry.spawn_powerups(1)[0]
    powerup.kind = PowerUpKind.TIME
    powerup.duration = 10.0

    game.collect_powerup(powerup)

    assert game.state.time_left == 40
    assert game.powerups.is_active(PowerUpKind.TIME)
    assert "+10 SECONDS!" in texts(scene)
    assert game.ui.powerup_status_text == "Power-up: TIME"

    game.advance_frames(119)
    assert game.registry.powerups == []
    game.advance_frames(1)
    assert len(game.registry.powerups) == 1


def test_powerup_expires_through_frame_ticks(empty_session, scene):
    game = empty_session
    game.powerups.activate(PowerUpKind.DOUBLE, 15, game.now)

    game.advance_frames(900)
    assert game.powerups.is_active(PowerUpKind.DOUBLE)

    game.advance_frames(1)
    assert not game.powerups.active
    assert "POWER-UP ENDED" in texts(scene)
    assert game.ui.powerup_status_text == "Power-up: None"


def test_powerups_persist_across_levels(empty_session):
    game = empty_session
    game.powerups.activate(PowerUpKind.MAGNET, 20, game.now)

    game.complete_level()

    assert game.powerups.is_active(PowerUpKind.MAGNET)


# ----------------------------
# Bombs move from level 3
# ----------------------------

def test_bombs_stay_put_on_level_two(empty_session):
    game = empty_session
    game.state.level = 2
    bombs = game.registry.spawn_bombs(3)
    before = [b.position for b in bombs]

    game.advance_frames(10)

    assert [b.position for b in bombs] == before


def test_bombs_jitter_within_bounds_from_level_three(empty_session, config):
    game = empty_session
    game.state.level = 3
    bombs = game.registry.spawn_bombs(3)
    game.registry.move(bombs[0], config.spawn_margin, config.spawn_margin)
    before = [b.position for b in bombs]

    game.advance_frames(1)

    for bomb, (x, y) in zip(bombs, before):
        assert abs(bomb.x - x) <= config.bomb_jitter
        assert abs(bomb.y - y) <= config.bomb_jitter
    assert [b.position for b in bombs] != before

    game.advance_frames(100)
    for bomb in bombs:
        assert config.spawn_margin <= bomb.x <= config.width - config.spawn_margin
        assert config.spawn_margin <= bomb.y <= config.height - config.spawn_margin


# ----------------------------
# Input / debug commands
# ----------------------------

def test_visuals_follow_pointer_while_inside(empty_session, scene):
    game = empty_session
    game.pointer_entered()
    game.pointer_moved(200.0, 150.0)

    game.advance_frames(1)

    assert scene.cursor == pytest.approx(game.interaction_point())
    assert 160.0 <= scene.torch.radius <= 180.0

    game.pointer_left()
    assert scene.cursor is None


def test_no_collisions_while_pointer_outside(empty_session, at_cursor):
    game = empty_session
    at_cursor(game, game.registry.spawn_bombs(1)[0])

    game.advance_frames(5)

    assert game.phase is Phase.PLAYING


def test_center_mode_key_toggles_and_survives_restart(session, scene):
    session.key_pressed(TOGGLE_CENTER_MODE)

    assert session.state.center_mode
    assert session.interaction_point() == pytest.approx(session.state.pointer)
    assert "CENTER MODE ON" in texts(scene)

    session.restart()
    assert session.state.center_mode

    session.key_pressed(TOGGLE_CENTER_MODE)
    assert not session.state.center_mode


def test_torch_debug_key_toggles_upgrade(session, audio, scene):
    session.key_pressed(TOGGLE_TORCH_DEBUG)

    assert session.torch.upgraded
    assert session.torch.persistent_scale == 1.1
    assert audio.chimes == [1.1]
    assert "Torch upgrade applied (debug)" in texts(scene)

    session.key_pressed(TOGGLE_TORCH_DEBUG)

    assert not session.torch.upgraded
    assert session.torch.target == 1.0
    assert "Torch upgrade reverted (debug)" in texts(scene)


def test_debug_revert_does_not_replay_crossed_thresholds(empty_session, audio):
    game = empty_session
    game.state.score = 1190
    game.collect_coin(game.registry.spawn_coins(1)[0])
    assert audio.chimes == [1.1, 1.2]

    game.revert_torch_upgrade()
    game.collect_coin(game.registry.spawn_coins(1)[0])

    assert game.state.score == 1210
    assert audio.chimes == [1.1, 1.2]
    assert not game.torch.upgraded


def test_unknown_key_is_ignored(session):
    session.key_pressed("fire")

    assert session.phase is Phase.PLAYING
    assert not session.state.center_mode


# ----------------------------
# Failing collaborators
# ----------------------------

class ExplodingScene(Scene):
    def show_particle_burst(self, position, count, color):
        raise RuntimeError("no particles today")

    def show_transient_message(self, text, color, duration_ms=1500.0):
        raise RuntimeError("no messages either")


class ExplodingAudio(AudioSink):
    def play_upgrade_chime(self, scale):
        raise RuntimeError("speaker unplugged")


def test_collaborator_failures_do_not_stop_play(caplog):
    game = GameSession(scene=ExplodingScene(), audio=ExplodingAudio(), rng=random.Random(5))
    game.start()
    game.registry.clear_all()
    game.state.score = 395

    with caplog.at_level(logging.ERROR):
        points = game.collect_coin(game.registry.spawn_coins(1)[0])

    assert points == 10
    assert game.state.score == 405
    assert game.torch.persistent_scale == 1.1
    assert "Chime failed" in caplog.text
    assert "show_particle_burst" in caplog.text

    game.advance_frames(30)
    assert len(game.registry.coins) == 1


def test_failing_ui_listener_is_logged(session, caplog):
    def broken(ui):
        raise ValueError("bad listener")

    session.ui_listeners.append(broken)

    with caplog.at_level(logging.ERROR):
        session.advance_frames(60)

    assert session.state.time_left == 29
    assert "UI listener failed" in caplog.text
