"""
Audio Engine Tests - Gain automation, lifecycle and mixing.
"""

import numpy as np
import pytest

from storygraph.audio.engine import AudioEngine, EngineState
from storygraph.audio.layers import AudioLayer
from storygraph.audio.params import RENDER_LAG_SECONDS, AudioParam, fade_param
from storygraph.audio.scheduler import ManualScheduler
from storygraph.audio.sources import ToneSource
from storygraph.config import Config
from storygraph.errors import AudioEngineError
from storygraph.testing import rms


def _tone_layer(engine, key="tone", gain=1.0):
    layer = AudioLayer(key, ToneSource(engine.sample_rate, (100.0,)), gain, engine=engine)
    layer.gain.set_value_at_time(gain, 0.0)
    engine.connect(layer)
    return layer


class TestAudioParam:
    """Tests for AudioParam automation."""

    def test_default_without_events(self):
        param = AudioParam(0.7)

        assert param.value_at(5.0) == pytest.approx(0.7)
        assert param.final_value() == pytest.approx(0.7)

    def test_linear_ramp(self):
        param = AudioParam(0.0)
        param.set_value_at_time(0.0, 1.0)
        param.linear_ramp_to_value_at_time(0.5, 3.5)

        assert param.value_at(0.0) == pytest.approx(0.0)
        assert param.value_at(2.25) == pytest.approx(0.25)
        assert param.value_at(3.5) == pytest.approx(0.5)
        assert param.value_at(10.0) == pytest.approx(0.5)

    def test_step_holds_until_event(self):
        param = AudioParam(1.0)
        param.set_value_at_time(0.25, 2.0)

        assert param.value_at(1.999) == pytest.approx(1.0)
        assert param.value_at(2.0) == pytest.approx(0.25)

    def test_cancel_scheduled_values(self):
        param = AudioParam(0.0)
        param.set_value_at_time(0.0, 0.0)
        param.linear_ramp_to_value_at_time(1.0, 2.0)

        param.cancel_scheduled_values(1.0)

        assert len(param.events) == 1
        assert param.value_at(5.0) == pytest.approx(0.0)

    def test_values_vectorised(self):
        param = AudioParam(0.0)
        param.set_value_at_time(0.0, 0.0)
        param.linear_ramp_to_value_at_time(1.0, 1.0)

        values = param.values(np.array([0.0, 0.25, 0.5, 2.0]))

        assert values.dtype == np.float32
        np.testing.assert_allclose(values, [0.0, 0.25, 0.5, 1.0], atol=1e-6)

    def test_discard_before_keeps_anchor(self):
        """Forgetting history never changes values from the cut onwards."""
        param = AudioParam(0.0)
        param.set_value_at_time(0.0, 0.0)
        param.linear_ramp_to_value_at_time(1.0, 2.0)
        param.set_value_at_time(1.0, 3.0)
        param.linear_ramp_to_value_at_time(0.0, 5.0)
        times = np.linspace(3.5, 6.0, 11)
        before = param.values(times)

        param.discard_before(3.5)

        np.testing.assert_allclose(param.values(times), before)
        assert len(param.events) == 2

    def test_is_ramping(self):
        param = AudioParam(0.0)
        fade_param(param, 1.0, 2.0, now=0.0)

        assert param.is_ramping(1.0)
        assert not param.is_ramping(2.0)


class TestFadeParam:
    """Tests for the shared fade algorithm."""

    def test_fade_from_current_value(self):
        param = AudioParam(0.8)

        fade_param(param, 0.0, 0.5, now=1.0)

        assert param.value_at(1.0) == pytest.approx(0.8)
        assert param.value_at(1.25) == pytest.approx(0.4)
        assert param.value_at(1.5) == pytest.approx(0.0)

    def test_interrupted_fade_has_no_jump(self):
        """Re-targeting mid-fade starts from where the gain actually is."""
        param = AudioParam(0.0)
        fade_param(param, 1.0, 2.0, now=0.0)

        fade_param(param, 0.0, 1.0, now=1.0)

        assert param.value_at(1.0) == pytest.approx(0.5)
        assert param.value_at(1.5) == pytest.approx(0.25)
        assert param.value_at(2.0) == pytest.approx(0.0)
        assert param.final_value() == pytest.approx(0.0)

    def test_forced_start_value(self):
        param = AudioParam(0.6)

        fade_param(param, 0.6, 2.0, now=0.0, start_value=0.0)

        assert param.value_at(0.0) == pytest.approx(0.0)
        assert param.value_at(1.0) == pytest.approx(0.3)

    def test_zero_duration_steps(self):
        param = AudioParam(1.0)

        fade_param(param, 0.0, 0.0, now=1.0)

        assert param.value_at(1.0) == pytest.approx(0.0)
        assert param.value_at(0.5) == pytest.approx(1.0)

    def test_monotonic_fade_out(self):
        param = AudioParam(0.0)
        fade_param(param, 0.9, 2.0, now=0.0)
        fade_param(param, 0.0, 2.0, now=1.0)

        values = param.values(np.linspace(1.0, 3.5, 50))

        assert np.all(np.diff(values) <= 1e-7)

    def test_old_history_is_discarded(self):
        param = AudioParam(0.0)
        for i in range(100):
            fade_param(param, float(i % 2), 0.5, now=float(i))

        assert len(param.events) < 10
        assert param.value_at(99.25) == pytest.approx(0.5)
        assert param.value_at(98.75) == pytest.approx(0.0)
        assert param.events[0].time < 99.0 - RENDER_LAG_SECONDS


class TestEngineLifecycle:
    """Tests for AudioEngine init/resume/suspend/dispose."""

    def test_init_starts_running(self):
        engine = AudioEngine(Config(), ManualScheduler())

        engine.init()

        assert engine.state is EngineState.RUNNING
        assert engine.master_gain.value_at(0.0) == pytest.approx(0.8)

    def test_no_autostart(self):
        engine = AudioEngine(Config(), ManualScheduler(), autostart=False)
        engine.init()

        assert engine.state is EngineState.SUSPENDED

        engine.resume()
        assert engine.is_running

    def test_start_muted(self):
        engine = AudioEngine(Config(start_muted=True), ManualScheduler()).init()

        assert engine.master_gain.value_at(0.0) == 0.0

    def test_init_twice_is_noop(self):
        engine = AudioEngine(Config(), ManualScheduler()).init()
        master = engine.master_gain

        engine.init()

        assert engine.master_gain is master

    def test_master_gain_before_init(self):
        with pytest.raises(AudioEngineError, match="not initialised"):
            AudioEngine().master_gain

    def test_dispose(self, engine):
        layer = _tone_layer(engine)

        engine.dispose()
        engine.dispose()

        assert engine.is_closed
        assert layer.stopped
        assert engine.layers == []

    def test_resume_after_dispose_raises(self, engine):
        engine.dispose()

        with pytest.raises(AudioEngineError):
            engine.resume()
        with pytest.raises(AudioEngineError):
            engine.connect(AudioLayer("x", ToneSource(8000), 1.0))

    def test_current_time_follows_scheduler(self):
        scheduler = ManualScheduler(start=100.0)
        engine = AudioEngine(Config(), scheduler).init()

        scheduler.advance(1.5)

        assert engine.current_time == pytest.approx(1.5)


class TestEngineRender:
    """Tests for mixing."""

    def test_render_silence_without_layers(self, engine):
        block = engine.render(0.1)

        assert block.dtype == np.float32
        assert len(block) == 800
        assert not block.any()

    def test_render_mixes_layers(self, engine):
        _tone_layer(engine, gain=0.5)

        block = engine.render(0.5)

        # 0.5 layer gain * 0.8 master on a unit sine
        assert np.max(np.abs(block)) == pytest.approx(0.4, abs=0.01)

    def test_render_is_block_size_independent(self, config, engine):
        """Two half blocks equal one whole block."""
        _tone_layer(engine)
        other = AudioEngine(config, ManualScheduler()).init()
        _tone_layer(other)

        halves = np.concatenate([engine.render(0.25), engine.render(0.25)])
        whole = other.render(0.5)

        assert engine.render_cursor == pytest.approx(0.5)
        np.testing.assert_allclose(halves, whole, atol=1e-5)

    def test_suspended_renders_silence(self, engine):
        _tone_layer(engine)

        engine.suspend()
        block = engine.render(0.1)

        assert not block.any()

    def test_master_gain_applies(self, engine):
        _tone_layer(engine)
        engine.master_gain.set_value_at_time(0.0, 0.0)

        assert rms(engine.render(0.2)) == 0.0

    def test_stopped_layers_are_dropped(self, engine):
        layer = _tone_layer(engine)

        layer.stop()
        block = engine.render(0.1)

        assert layer not in engine.layers
        assert not block.any()

    def test_failing_layer_does_not_break_mix(self, engine):
        good = _tone_layer(engine, "good")
        bad = _tone_layer(engine, "bad")

        def explode(start, frames):
            raise RuntimeError("render failed")

        bad.source.render = explode
        block = engine.render(0.1)

        assert rms(block) > 0
        assert good in engine.layers

    def test_output_is_clipped(self, engine):
        for i in range(4):
            _tone_layer(engine, f"t{i}")
        engine.master_gain.set_value_at_time(1.0, 0.0)

        block = engine.render(0.1)

        assert np.max(np.abs(block)) <= 1.0
