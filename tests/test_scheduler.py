from restbreak.engine.scheduler import BreakScheduler, Monitoring, Resting, Suggesting, Suspended
from restbreak.engine.types import (
    BigBreakSkipped,
    BreakStarted,
    IdleProgress,
    Minimize,
    State,
    StatName,
    Suggest,
    TinyBreakSkipped,
    TooltipCounters,
    WidgetCountdown,
)

from conftest import FakeIdleSource, Harness, make_config


def test_scheduler_starts_monitoring(harness):
    assert harness.scheduler.state == State.MONITORING
    assert isinstance(harness.scheduler.phase, Monitoring)


def test_sample_idle_seconds_truncates_milliseconds():
    source = FakeIdleSource(idle_ms=2999)
    scheduler = BreakScheduler(source, make_config())

    assert scheduler.sample_idle_seconds() == 2


def test_simple_tiny_break_is_suggested(harness, config):
    for _ in range(config.tiny_interval):
        assert harness.scheduler.state == State.MONITORING
        harness.run(1)

    assert harness.scheduler.state == State.SUGGESTING
    phase = harness.scheduler.phase
    assert isinstance(phase, Suggesting)
    assert phase.pause.delay_ticks == config.tiny_duration
    assert phase.patience.delay_ticks == config.patience_interval

    suggestions = harness.recorder.of(Suggest)
    assert suggestions == [Suggest(config.tiny_duration, False)]

    progress = [e.percent for e in harness.recorder.of(IdleProgress)]
    assert len(progress) == config.tiny_interval
    # The counter resets on the tick that fires, so only the build-up is monotonic.
    build_up = progress[:-1]
    assert build_up == sorted(build_up)
    assert all(0.0 <= p <= 100.0 for p in progress)
    assert progress[-1] == 0.0

    assert harness.stats.get(StatName.TINY_BREAKS) == 1
    assert harness.stats.get(StatName.LAST_TINY_BREAK_TIME) is not None
    assert harness.stats.get(StatName.TOTAL_TICKS) == config.tiny_interval
    assert harness.stats.get(StatName.ACTIVITY_TICKS) == config.tiny_interval


def test_obeying_suggestion_returns_to_monitoring(harness, config):
    harness.run(config.tiny_interval)
    harness.recorder.clear()

    for i in range(config.tiny_duration):
        assert harness.scheduler.state == State.SUGGESTING
        harness.run(1, idle_seconds=i + 1)

    assert harness.scheduler.state == State.MONITORING
    assert len(harness.recorder.of(Minimize)) == 1
    assert harness.recorder.of(BreakStarted) == []
    assert harness.notifier.calls == []

    countdown = [e.seconds_remaining for e in harness.recorder.of(Suggest)]
    assert len(countdown) == config.tiny_duration
    assert countdown[:-1] == list(range(config.tiny_duration - 1, 0, -1))
    assert countdown[-1] == -1
    assert all(a > b for a, b in zip(countdown, countdown[1:]))

    assert harness.stats.get(StatName.TINY_BREAKS) == 1


def test_idle_then_active_tiny_break():
    h = Harness(make_config())
    part1, part2 = 10, 40
    part3 = h.config.tiny_interval - part1 - part2

    h.run(part1)
    for i in range(part2):
        h.run(1, idle_seconds=i + 1)
    assert h.scheduler.state == State.MONITORING
    assert h.recorder.of(Suggest) == []

    for _ in range(part3):
        assert h.scheduler.state == State.MONITORING
        h.run(1)

    assert h.scheduler.state == State.SUGGESTING
    assert len(h.recorder.of(Suggest)) == 1


def test_suspended_blocks_everything(harness, config):
    harness.scheduler.stop()
    assert harness.scheduler.state == State.SUSPENDED
    assert harness.recorder.events[-1] == TooltipCounters(0, 0)
    harness.recorder.clear()

    for _ in range(config.tiny_interval):
        harness.run(1)
        assert harness.scheduler.state == State.SUSPENDED

    assert harness.recorder.of(Suggest) == []
    assert harness.recorder.of(IdleProgress) == []
    assert harness.stats.get(StatName.TOTAL_TICKS) == 0
    assert harness.scheduler.tiny_counter.ticks == 0

    harness.scheduler.start()
    assert harness.scheduler.state == State.MONITORING
    assert harness.recorder.events == [IdleProgress(0.0)]


def test_stop_freezes_persistent_counters(harness):
    harness.run(100)
    harness.scheduler.stop()
    harness.run(50)
    harness.scheduler.start()

    assert harness.scheduler.tiny_counter.ticks == 100
    assert harness.scheduler.big_counter.ticks == 100


def test_start_is_idempotent(harness):
    harness.scheduler.stop()
    harness.recorder.clear()

    harness.scheduler.start()
    state_once = harness.scheduler.state
    events_once = list(harness.recorder.events)
    harness.scheduler.start()

    assert harness.scheduler.state == state_once == State.MONITORING
    assert harness.recorder.events == events_once


def test_start_while_suggesting_keeps_suggestion():
    h = Harness(make_config(tiny_interval=10))
    h.run(10)
    h.recorder.clear()

    h.scheduler.start()

    assert h.scheduler.state == State.SUGGESTING
    assert h.recorder.events == []


def test_big_break_after_tiny_breaks(config):
    h = Harness(config)
    cycle = config.tiny_interval + config.patience_interval + config.tiny_duration
    tiny_breaks = config.big_interval // cycle
    # The big counter does not advance during suggestions and breaks.
    ticks = config.big_interval + tiny_breaks * (config.patience_interval + config.tiny_duration)

    h.run(ticks)

    assert h.scheduler.state == State.SUGGESTING
    suggestions = h.recorder.of(Suggest)
    assert len(suggestions) == tiny_breaks * (2 + config.patience_interval) + 1
    assert suggestions[-1] == Suggest(config.big_duration, False)

    labelled_big = [s for s in suggestions if s.next_is_big]
    assert labelled_big == [Suggest(config.tiny_duration, True)]

    assert len(h.recorder.of(BreakStarted)) == tiny_breaks
    assert h.notifier.calls == [(True, False)] * tiny_breaks
    assert len(h.recorder.of(IdleProgress)) >= config.big_interval
    assert h.stats.get(StatName.TINY_BREAKS) == tiny_breaks
    assert h.stats.get(StatName.BIG_BREAKS) == 1
    assert h.stats.get(StatName.LAST_BIG_BREAK_TIME) is not None

    h.recorder.clear()
    for i in range(config.big_duration):
        h.run(1, idle_seconds=i + 1)

    assert h.scheduler.state == State.MONITORING
    assert len(h.recorder.of(Suggest)) == config.big_duration


def test_bigger_break_wins_when_both_fire():
    h = Harness(make_config(tiny_interval=10, big_interval=10))

    h.run(10)

    assert h.recorder.of(Suggest) == [Suggest(60, True)]
    phase = h.scheduler.phase
    assert isinstance(phase, Suggesting)
    assert phase.pause.delay_ticks == 60
    assert h.stats.get(StatName.BIG_BREAKS) == 1
    assert h.stats.get(StatName.TINY_BREAKS) == 0


def test_idle_caused_skip_counts_break_without_events():
    h = Harness(make_config())

    h.run(100)
    for i in range(120):
        h.run(1, idle_seconds=i + 1)

    assert h.scheduler.state == State.MONITORING
    assert h.scheduler.tiny_counter.is_reset()
    assert h.stats.get(StatName.TINY_BREAKS) == 1
    assert h.stats.get(StatName.IDLE_CAUSED_SKIP_TINY) == 1
    assert h.stats.get(StatName.BIG_BREAKS) == 0
    assert h.stats.get(StatName.IDLE_CAUSED_SKIP_BIG) == 0
    assert h.recorder.of(Suggest) == []
    assert h.recorder.of(BreakStarted) == []
    assert h.recorder.of(TinyBreakSkipped) == []
    assert h.stats.get(StatName.TINY_BREAKS_SKIPPED) == 0
    assert h.stats.get(StatName.MAX_IDLENESS) == 120


def test_idle_caused_skip_big():
    h = Harness(make_config())

    h.run(100)
    for i in range(300):
        h.run(1, idle_seconds=i + 1)

    assert h.stats.get(StatName.IDLE_CAUSED_SKIP_BIG) == 1
    assert h.stats.get(StatName.BIG_BREAKS) == 1
    assert h.recorder.of(Suggest) == []


def test_idle_timers_disabled_never_skip():
    h = Harness(make_config(use_idle_timers=False))

    h.run(100)
    for i in range(400):
        h.run(1, idle_seconds=i + 1)

    assert h.stats.get(StatName.IDLE_CAUSED_SKIP_TINY) == 0
    assert h.stats.get(StatName.IDLE_CAUSED_SKIP_BIG) == 0
    assert h.scheduler.tiny_counter.ticks == 500


def test_tick_statistics(harness):
    harness.run(3)
    harness.run(2, idle_seconds=7)

    assert harness.stats.get(StatName.TOTAL_TICKS) == 5
    assert harness.stats.get(StatName.ACTIVITY_TICKS) == 3
    assert harness.stats.get(StatName.CURRENT_IDLE_SECONDS) == 7
    assert harness.stats.get(StatName.MAX_IDLENESS) == 7


def test_tooltip_counters_follow_every_tick(harness, config):
    harness.run(5)

    tooltips = harness.recorder.of(TooltipCounters)
    assert len(tooltips) == 5
    assert tooltips[-1] == TooltipCounters(config.tiny_interval - 5, config.big_interval - 5)


def test_ignored_suggestion_forces_break():
    h = Harness(make_config(tiny_interval=10))
    h.run(10)
    h.recorder.clear()

    h.run(30)

    assert h.scheduler.state == State.RESTING
    phase = h.scheduler.phase
    assert isinstance(phase, Resting)
    assert phase.pause.ticks_remaining() == 20
    assert Suggest(-1, False) in h.recorder.events
    assert len(h.recorder.of(BreakStarted)) == 1
    assert h.notifier.calls == [(True, False)]
    assert h.recorder.events[-2:] == [BreakStarted(), TooltipCounters(10, 3590)]


def test_activity_resets_pause_while_suggesting():
    h = Harness(make_config(tiny_interval=10))
    h.run(10)
    h.run(5, idle_seconds=5)
    assert h.recorder.of(Suggest)[-1] == Suggest(15, False)

    h.run(1)

    assert h.recorder.of(Suggest)[-1] == Suggest(20, False)
    assert h.recorder.of(WidgetCountdown)[-1] == WidgetCountdown(20)


def test_long_idle_restores_patience():
    h = Harness(make_config(tiny_interval=10, tiny_duration=100))
    h.run(10)

    # A long pause keeps patience from ever running out.
    for i in range(99):
        h.run(1, idle_seconds=i + 1)
    assert h.scheduler.state == State.SUGGESTING

    h.run(1, idle_seconds=100)
    assert h.scheduler.state == State.MONITORING
    assert h.recorder.of(BreakStarted) == []


def test_resting_counts_down_regardless_of_activity():
    h = Harness(make_config(tiny_interval=10, use_popup=False))
    h.run(10)
    assert h.scheduler.state == State.RESTING

    h.run(19)
    assert h.scheduler.state == State.RESTING
    assert h.recorder.of(WidgetCountdown)[-1] == WidgetCountdown(1)

    h.run(1)
    assert h.scheduler.state == State.MONITORING


def test_without_popup_break_starts_immediately():
    h = Harness(make_config(tiny_interval=10, use_popup=False))

    h.run(10)

    assert h.scheduler.state == State.RESTING
    assert h.notifier.calls == [(True, False)]
    assert h.recorder.of(Suggest) == []
    assert h.recorder.of(WidgetCountdown) == [WidgetCountdown(20)]
    assert len(h.recorder.of(BreakStarted)) == 1


def test_reset_after_break_events(harness):
    harness.run(10)
    harness.recorder.clear()

    harness.scheduler.reset_after_break()

    assert harness.recorder.events == [
        TooltipCounters(890, 3590),
        IdleProgress(0.0),
        Suggest(-1, False),
        Minimize(),
    ]


def test_hibernation_resets_suggestion():
    h = Harness(make_config(tiny_interval=10))
    h.run(10)
    assert h.scheduler.state == State.SUGGESTING
    h.recorder.clear()

    h.clock.jump(3600)
    h.run(1)

    assert h.scheduler.state == State.MONITORING
    assert len(h.recorder.of(Minimize)) == 1
    assert h.scheduler.tiny_counter.ticks == 1


def test_hibernation_resets_enforced_break():
    h = Harness(make_config(tiny_interval=10, use_popup=False))
    h.run(10)
    assert h.scheduler.state == State.RESTING

    h.clock.jump(61)
    h.run(1)

    assert h.scheduler.state == State.MONITORING


def test_short_gap_is_not_hibernation():
    h = Harness(make_config(tiny_interval=10))
    h.run(10)

    h.clock.jump(58)
    h.run(1)

    assert h.scheduler.state == State.SUGGESTING


def test_hibernation_keeps_suspended():
    h = Harness(make_config())
    h.run(5)
    h.scheduler.stop()
    h.recorder.clear()

    h.clock.jump(3600)
    h.run(1)

    assert h.scheduler.state == State.SUSPENDED
    assert h.recorder.events == []


def test_handle_resume_drops_break():
    h = Harness(make_config(tiny_interval=10))
    h.run(10)

    h.scheduler.handle_resume()

    assert h.scheduler.state == State.MONITORING
    assert h.recorder.events[-1] == Minimize()


def test_skip_tiny_break():
    h = Harness(make_config(tiny_interval=10))
    h.run(10)
    h.recorder.clear()

    h.scheduler.skip_break()

    assert h.scheduler.state == State.MONITORING
    assert h.recorder.of(TinyBreakSkipped) == [TinyBreakSkipped()]
    assert h.recorder.of(BigBreakSkipped) == []
    assert len(h.recorder.of(Minimize)) == 1
    assert h.stats.get(StatName.TINY_BREAKS_SKIPPED) == 1
    assert h.stats.get(StatName.BIG_BREAKS_SKIPPED) == 0


def test_skip_big_break():
    h = Harness(make_config(tiny_interval=10, big_interval=20))
    h.run(10)
    h.scheduler.skip_break()
    h.run(10)
    assert h.recorder.of(Suggest)[-1] == Suggest(60, False)
    h.recorder.clear()

    h.scheduler.skip_break()

    assert h.recorder.of(BigBreakSkipped) == [BigBreakSkipped()]
    assert h.recorder.of(TinyBreakSkipped) == [TinyBreakSkipped()]
    assert h.stats.get(StatName.BIG_BREAKS_SKIPPED) == 1
    assert h.stats.get(StatName.TINY_BREAKS_SKIPPED) == 2


def test_skip_while_suspended_resumes_monitoring(harness):
    harness.scheduler.stop()

    harness.scheduler.skip_break()

    assert harness.scheduler.state == State.MONITORING


def test_postpone_during_suggestion():
    h = Harness(make_config(tiny_interval=10, postpone_interval=5))
    h.run(10)
    h.recorder.clear()

    h.scheduler.postpone_break()

    assert h.scheduler.state == State.MONITORING
    assert h.stats.get(StatName.TINY_BREAKS_POSTPONED) == 1
    assert h.stats.get(StatName.BIG_BREAKS_POSTPONED) == 0
    assert h.scheduler.big_counter.ticks == 5
    assert h.recorder.events == [
        TooltipCounters(10, 3595),
        Suggest(-1, False),
        Minimize(),
    ]


def test_postpone_mid_interval_pushes_break_back():
    h = Harness(make_config(tiny_interval=10, postpone_interval=5))
    h.run(6)

    h.scheduler.postpone_break()

    assert h.scheduler.tiny_counter.ticks == 1
    assert h.scheduler.tiny_counter.ticks_remaining() == 9
    assert h.stats.get(StatName.TINY_BREAKS_POSTPONED) == 0

    h.run(8)
    assert h.scheduler.state == State.MONITORING
    h.run(1)
    assert h.scheduler.state == State.SUGGESTING


def test_restart_resets_counters(harness):
    harness.run(100)

    harness.scheduler.restart()

    assert harness.scheduler.tiny_counter.is_reset()
    assert harness.scheduler.big_counter.is_reset()
    assert harness.scheduler.state == State.MONITORING
    assert harness.recorder.events[-1] == Minimize()


def test_set_suspended_toggles(harness):
    harness.scheduler.set_suspended(True)
    assert isinstance(harness.scheduler.phase, Suspended)

    harness.scheduler.set_suspended(False)
    assert harness.scheduler.state == State.MONITORING


def test_reconfigure_same_values_keeps_progress(harness):
    harness.run(100)

    rebuilt = harness.scheduler.reconfigure(make_config())

    assert rebuilt is False
    assert harness.scheduler.tiny_counter.ticks == 100


def test_reconfigure_popup_only_keeps_progress(harness):
    harness.run(100)

    rebuilt = harness.scheduler.reconfigure(make_config(use_popup=False))

    assert rebuilt is False
    assert harness.scheduler.config.use_popup is False
    assert harness.scheduler.tiny_counter.ticks == 100


def test_reconfigure_interval_change_rebuilds():
    h = Harness(make_config(tiny_interval=10))
    h.run(10)
    assert h.scheduler.state == State.SUGGESTING

    rebuilt = h.scheduler.reconfigure(make_config(tiny_interval=20))

    assert rebuilt is True
    assert h.scheduler.state == State.MONITORING
    assert h.scheduler.tiny_counter.delay_ticks == 20
    assert h.scheduler.big_counter.ticks == 0


def test_reconfigure_idle_timer_flag_rebuilds(harness):
    harness.run(100)

    rebuilt = harness.scheduler.reconfigure(make_config(use_idle_timers=False))

    assert rebuilt is True
    assert harness.scheduler.tiny_counter.ticks == 0
    assert harness.scheduler.tiny_counter.idle_reset_threshold > 10**9


def test_reconfigure_force_restart(harness):
    harness.run(100)

    rebuilt = harness.scheduler.reconfigure(make_config(), force_restart=True)

    assert rebuilt is True
    assert harness.scheduler.tiny_counter.ticks == 0


def test_reconfigure_keeps_suspended(harness):
    harness.scheduler.stop()

    harness.scheduler.reconfigure(make_config(tiny_interval=20))

    assert harness.scheduler.state == State.SUSPENDED
