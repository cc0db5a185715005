import colorsys
import math

import numpy as np
import pygame
import pytest

import constants
from heart_curve import heart_point
from particle import Particle
from particle_system import (
    ParticleSystem,
    heartbeat_envelope,
    hsv_to_rgb,
    kinematic_color,
    map_range_clamped,
    restoring_impulse,
    to_screen,
)


def _clamped_lerp(value, in_max, out_min, out_max):
    t = min(max(value / in_max, 0.0), 1.0)
    return out_min + t * (out_max - out_min)


@pytest.fixture
def small_system(rng):
    return ParticleSystem(rng, num_particles=300)


def test_default_system_has_reference_particle_count():
    system = ParticleSystem(np.random.default_rng(0))
    assert len(system) == constants.PARTICLE_COUNT == 20000
    assert system.positions.shape == (20000, 2)
    assert ((system.phase_offsets >= 0.0) & (system.phase_offsets < 2 * math.pi)).all()


def test_fixed_fields_unchanged_after_steps(small_system):
    sizes = small_system.sizes.copy()
    phase_offsets = small_system.phase_offsets.copy()
    offsets = small_system.initial_offsets.copy()

    for _ in range(25):
        small_system.update()

    assert len(small_system) == 300
    np.testing.assert_array_equal(small_system.sizes, sizes)
    np.testing.assert_array_equal(small_system.phase_offsets, phase_offsets)
    np.testing.assert_array_equal(small_system.initial_offsets, offsets)


def test_fixed_fields_are_read_only(small_system):
    with pytest.raises(ValueError):
        small_system.sizes[0] = 10.0
    with pytest.raises(ValueError):
        small_system.phase_offsets[0] = 1.0
    with pytest.raises(ValueError):
        small_system.initial_offsets[0, 0] = 1.0


def test_phase_advances_each_step(small_system):
    phases = []
    for _ in range(10):
        small_system.update()
        phases.append(small_system.phase)
    assert np.all(np.diff(phases) > 0)
    assert small_system.phase == pytest.approx(10 * constants.PHASE_INCREMENT)
    assert small_system.frame_count == 10


def test_state_stays_finite(small_system):
    for _ in range(200):
        small_system.update()
    assert np.isfinite(small_system.positions).all()
    assert np.isfinite(small_system.velocities).all()
    assert np.isfinite(small_system.colors).all()
    assert math.isfinite(small_system.get_mean_speed())


def test_heartbeat_is_bounded():
    phases = np.linspace(-100.0, 100.0, 20001)
    values = np.array([heartbeat_envelope(p) for p in phases])
    assert (values >= 0.0).all()
    assert (values <= 1.0).all()
    assert heartbeat_envelope(math.pi / 2) == pytest.approx(1.0)
    assert heartbeat_envelope(-math.pi / 2) == pytest.approx(0.0, abs=1e-4)


def test_map_range_clamped():
    assert map_range_clamped(2.5, 0.0, 5.0, 0.7, 1.0) == pytest.approx(0.85)
    assert map_range_clamped(-3.0, 0.0, 5.0, 0.7, 1.0) == pytest.approx(0.7)
    assert map_range_clamped(1000.0, 0.0, 5.0, 0.7, 1.0) == pytest.approx(1.0)


@pytest.mark.parametrize("h", [0.0, 0.1, 0.3, 0.5, 0.7, 0.95])
@pytest.mark.parametrize("s", [0.0, 0.5, 1.0])
def test_hsv_to_rgb_matches_colorsys(h, s):
    assert hsv_to_rgb(h, s, 0.8) == pytest.approx(colorsys.hsv_to_rgb(h, s, 0.8))


@pytest.mark.parametrize("speed, distance", [
    (0.0, 0.0),
    (2.5, 0.5),
    (5.0, 1.0),
    (1000.0, 1000.0),
    (1000.0, 0.0),
    (0.0, 1000.0),
])
def test_kinematic_color_stays_in_range(speed, distance):
    r, g, b = kinematic_color(speed, distance)
    # Hue 0: r carries the value, g and b carry value * (1 - saturation).
    value = r
    saturation = 1.0 - g / r
    assert g == pytest.approx(b)
    assert 0.7 - 1e-12 <= value <= 1.0 + 1e-12
    assert 0.9 - 1e-12 <= saturation <= 1.0 + 1e-12


def test_kinematic_color_extremes():
    assert kinematic_color(0.0, 0.0) == pytest.approx((0.7, 0.07, 0.07))
    assert kinematic_color(1000.0, 1000.0) == pytest.approx((1.0, 0.0, 0.0))


def test_single_particle_step_matches_reference():
    v0 = np.array([0.3, -0.2])
    particle = Particle(position=(0.0, 0.0), initial_offset=(0.0, 0.0), velocity=v0, size=1.0, phase_offset=0.0)
    system = ParticleSystem.from_particles([particle], np.random.default_rng(42))

    system.update()

    # Independent reference computation.
    phase = 0.05
    heartbeat = (math.sin(phase) * 0.5 + 0.5) ** 0.3
    global_wave = math.sin(phase * 0.5) * 5.0
    jitter = np.random.default_rng(42).random((1, 2))[0] - 0.5

    target = np.array([0.0, 5.0 * constants.HEART_SIZE / 16.0])
    heartbeat_offset = np.array([math.cos(phase * 2), math.sin(phase * 2)]) * 10.0 * heartbeat
    wave_offset = np.array([math.cos(phase * 0.5), math.sin(phase * 0.5)]) * global_wave
    velocity = (v0 + jitter) * 0.9
    position = target + heartbeat_offset + wave_offset + velocity
    to_target = target - position
    if np.hypot(*to_target) > constants.OUTLINE_THICKNESS * 1.5:
        velocity = velocity + to_target * 0.05

    saturation = _clamped_lerp(np.hypot(*position) / constants.HEART_SIZE, 1.0, 0.9, 1.0)
    value = _clamped_lerp(np.hypot(*velocity), 5.0, 0.7, 1.0)

    np.testing.assert_allclose(system.positions[0], position, rtol=1e-9, atol=1e-9)
    np.testing.assert_allclose(system.velocities[0], velocity, rtol=1e-9, atol=1e-9)
    np.testing.assert_allclose(system.colors[0], colorsys.hsv_to_rgb(0.0, saturation, value), atol=1e-9)


def test_restoring_impulse_inactive_at_target():
    tx, ty = heart_point(0.7)
    assert restoring_impulse(tx, ty, tx, ty, constants.CONTAINMENT_RADIUS, constants.RESTORING_STRENGTH) == (0.0, 0.0)


def test_restoring_impulse_inactive_within_threshold():
    tx, ty = heart_point(0.7)
    dvx, dvy = restoring_impulse(tx + 44.0, ty, tx, ty, constants.CONTAINMENT_RADIUS, constants.RESTORING_STRENGTH)
    assert (dvx, dvy) == (0.0, 0.0)


def test_restoring_impulse_pulls_toward_target():
    tx, ty = heart_point(0.7)
    dvx, dvy = restoring_impulse(tx + 100.0, ty, tx, ty, constants.CONTAINMENT_RADIUS, constants.RESTORING_STRENGTH)
    assert dvx < 0.0
    assert dvx == pytest.approx(-100.0 * constants.RESTORING_STRENGTH)
    assert dvy == pytest.approx(0.0, abs=1e-12)


def test_same_seed_same_trajectory():
    a = ParticleSystem(np.random.default_rng(99), num_particles=50)
    b = ParticleSystem(np.random.default_rng(99), num_particles=50)
    for _ in range(5):
        a.update()
        b.update()
    np.testing.assert_array_equal(a.positions, b.positions)
    np.testing.assert_array_equal(a.velocities, b.velocities)


def test_empty_system_steps(rng):
    system = ParticleSystem.from_particles([], rng)
    system.update()
    assert len(system) == 0
    assert system.get_mean_speed() == 0.0
    assert system.get_max_target_distance() == 0.0


def test_particle_snapshot_is_a_copy(small_system):
    snapshot = small_system.particle(3)
    snapshot.position[0] += 1000.0
    assert small_system.positions[3, 0] != snapshot.position[0]
    assert snapshot.size == small_system.sizes[3]
    assert snapshot.phase_offset == small_system.phase_offsets[3]


def test_render_radii_pulse_within_bounds(small_system):
    for elapsed in (0.0, 0.37, 5.0, 123.4):
        radii = small_system.render_radii(elapsed)
        assert (radii >= small_system.sizes * 0.8 - 1e-12).all()
        assert (radii <= small_system.sizes * 1.2 + 1e-12).all()
    expected = small_system.sizes * (1 + 0.2 * np.sin(2 * 1.5 + small_system.phase_offsets))
    np.testing.assert_allclose(small_system.render_radii(1.5), expected)


def test_to_screen_flips_y_and_centers():
    positions = np.array([[0.0, 0.0], [10.0, 20.0], [-400.0, -300.0]])
    np.testing.assert_allclose(
        to_screen(positions, 800, 600),
        [[400.0, 300.0], [410.0, 280.0], [0.0, 600.0]],
    )


def test_draw_renders_particle_at_center(rng):
    particle = Particle(position=(0.0, 0.0), initial_offset=(0.0, 0.0), velocity=(0.0, 0.0), size=3.0, phase_offset=0.0)
    system = ParticleSystem.from_particles([particle], rng)
    screen = pygame.Surface((constants.WIDTH, constants.HEIGHT))
    screen.fill((50, 50, 50))

    system.draw(screen, elapsed_time=0.0)

    assert tuple(screen.get_at((400, 300)))[:3] == (255, 0, 0)
    assert tuple(screen.get_at((0, 0)))[:3] == constants.BLACK


def test_draw_tolerates_non_finite_positions(rng):
    system = ParticleSystem(rng, num_particles=10)
    system.positions[0] = (np.nan, np.inf)
    screen = pygame.Surface((80, 60))
    system.draw(screen, elapsed_time=1.0)
