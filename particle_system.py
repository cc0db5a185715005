# particle_system.py

import numpy as np
import pygame
import logging
import numba
import constants
from constants import (
    HEARTBEAT_EXPONENT, HEARTBEAT_AMPLITUDE, HEARTBEAT_SWELL,
    JITTER_STRENGTH, VELOCITY_DAMPING, CONTAINMENT_RADIUS, RESTORING_STRENGTH,
    COLOR_HUE, COLOR_MAX_DISTANCE, COLOR_MIN_SATURATION, COLOR_MAX_SATURATION,
    COLOR_MAX_SPEED, COLOR_MIN_VALUE, COLOR_MAX_VALUE,
)
from heart_curve import heart_xy, heart_point
from particle import Particle, sample_particles

logger = logging.getLogger("heart_swarm")

# --- JIT-Compiled Physics Functions ---
# These functions are compiled to machine code by Numba for maximum performance.
# They are deliberately kept outside the ParticleSystem class and operate only on
# NumPy arrays and simple scalar values, as required by Numba's nopython mode.
# They are also callable from plain Python, which the tests rely on.

@numba.jit(nopython=True)
def heartbeat_envelope(phase):
    """
    The smoothed pulse driving the swarm: (sin(phase)*0.5 + 0.5) ** 0.3.
    The exponent sharpens the rise and flattens the decay. Bounded in [0, 1].
    """
    return (np.sin(phase) * 0.5 + 0.5) ** HEARTBEAT_EXPONENT

@numba.jit(nopython=True)
def map_range_clamped(value, in_min, in_max, out_min, out_max):
    """Linear map from [in_min, in_max] to [out_min, out_max], clamped to the output range."""
    t = (value - in_min) / (in_max - in_min)
    if t < 0.0:
        t = 0.0
    elif t > 1.0:
        t = 1.0
    return out_min + t * (out_max - out_min)

@numba.jit(nopython=True)
def hsv_to_rgb(h, s, v):
    """HSV to RGB, all components in [0, 1]. Same sextant scheme as colorsys."""
    if s == 0.0:
        return v, v, v
    i = int(h * 6.0)
    f = h * 6.0 - i
    p = v * (1.0 - s)
    q = v * (1.0 - s * f)
    t = v * (1.0 - s * (1.0 - f))
    i = i % 6
    if i == 0:
        return v, t, p
    if i == 1:
        return q, v, p
    if i == 2:
        return p, v, t
    if i == 3:
        return p, q, v
    if i == 4:
        return t, p, v
    return v, p, q

@numba.jit(nopython=True)
def kinematic_color(speed, distance_from_center):
    """
    Derives a particle's RGB color from its speed and its distance from the
    heart's center (in units of HEART_SIZE). Faster particles are brighter,
    outer particles more saturated.
    """
    saturation = map_range_clamped(
        distance_from_center, 0.0, COLOR_MAX_DISTANCE,
        COLOR_MIN_SATURATION, COLOR_MAX_SATURATION
    )
    value = map_range_clamped(
        speed, 0.0, COLOR_MAX_SPEED,
        COLOR_MIN_VALUE, COLOR_MAX_VALUE
    )
    return hsv_to_rgb(COLOR_HUE, saturation, value)

@numba.jit(nopython=True)
def restoring_impulse(px, py, tx, ty, threshold, strength):
    """
    Velocity correction pulling a particle at (px, py) toward its target
    (tx, ty). Zero while the particle is within `threshold` of the target.
    """
    dx = tx - px
    dy = ty - py
    if np.sqrt(dx * dx + dy * dy) > threshold:
        return dx * strength, dy * strength
    return 0.0, 0.0

@numba.jit(nopython=True, fastmath=True)
def _step_particles_jit(positions, initial_offsets, velocities, phase_offsets, colors, jitter, phase, heartbeat, global_wave, heart_size):
    """
    Numba-accelerated per-particle update. Each particle is independent;
    phase, heartbeat and global_wave are shared and read-only.
    Modifies positions, velocities and colors in place.
    """
    swell = 1.0 + heartbeat * HEARTBEAT_SWELL
    for i in range(positions.shape[0]):
        individual_phase = phase + phase_offsets[i]
        pulse = HEARTBEAT_AMPLITUDE * heartbeat
        heartbeat_x = np.cos(individual_phase * 2.0) * pulse
        heartbeat_y = np.sin(individual_phase * 2.0) * pulse
        wave_x = np.cos(individual_phase * 0.5) * global_wave
        wave_y = np.sin(individual_phase * 0.5) * global_wave

        # The x component of the offset doubles as the curve parameter.
        offset_x = initial_offsets[i, 0]
        offset_y = initial_offsets[i, 1]
        target_x, target_y = heart_xy(offset_x, heart_size)

        px = target_x + offset_x * swell + heartbeat_x + wave_x
        py = target_y + offset_y * swell + heartbeat_y + wave_y

        vx = (velocities[i, 0] + jitter[i, 0] * JITTER_STRENGTH) * VELOCITY_DAMPING
        vy = (velocities[i, 1] + jitter[i, 1] * JITTER_STRENGTH) * VELOCITY_DAMPING
        px += vx
        py += vy

        dvx, dvy = restoring_impulse(px, py, target_x, target_y,
                                     CONTAINMENT_RADIUS, RESTORING_STRENGTH)
        vx += dvx
        vy += dvy

        positions[i, 0] = px
        positions[i, 1] = py
        velocities[i, 0] = vx
        velocities[i, 1] = vy

        speed = np.sqrt(vx * vx + vy * vy)
        distance_from_center = np.sqrt(px * px + py * py) / heart_size
        r, g, b = kinematic_color(speed, distance_from_center)
        colors[i, 0] = r
        colors[i, 1] = g
        colors[i, 2] = b


def to_screen(positions: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Converts curve coordinates (origin at the center, y up) into pygame
    screen coordinates (origin top-left, y down).
    """
    screen_positions = np.empty_like(positions, dtype=float)
    screen_positions[:, 0] = width / 2 + positions[:, 0]
    screen_positions[:, 1] = height / 2 - positions[:, 1]
    return screen_positions


class ParticleSystem:
    """
    Owns the heart swarm's state and advances it one frame at a time using
    a Numba kernel over NumPy arrays.

    Data Contract:
    - Inputs:
        - rng (np.random.Generator): The injected random source, used for
          spawning and for the per-frame velocity jitter.
        - num_particles (int): Number of particles to spawn. Ignored when
          `particles` is given.
        - particles (list[Particle] | None): Explicit particle records to
          start from instead of sampling.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: Manages the lifecycle of all particle data.
    - Invariants: The number of particles is constant throughout the simulation.
      All internal arrays keep the same length. initial_offsets, sizes and
      phase_offsets are read-only after construction. phase never decreases.
    """
    def __init__(self, rng: np.random.Generator, num_particles: int = constants.PARTICLE_COUNT, particles=None):
        self.rng = rng
        self.phase = 0.0
        self.frame_count = 0

        if particles is None:
            state = sample_particles(num_particles, rng)
        else:
            state = self._stack_particles(particles)

        # --- Structure of Arrays ---
        self.positions = state['positions']
        self.velocities = state['velocities']
        self.colors = state['colors']
        self.initial_offsets = state['initial_offsets']
        self.sizes = state['sizes']
        self.phase_offsets = state['phase_offsets']
        self.num_particles = self.positions.shape[0]

        # Fixed per-particle identity.
        for fixed in (self.initial_offsets, self.sizes, self.phase_offsets):
            fixed.flags.writeable = False

        logger.info(f"ParticleSystem created for {self.num_particles} particles.")

    @classmethod
    def from_particles(cls, particles, rng: np.random.Generator):
        """Builds a system from explicit Particle records."""
        return cls(rng, particles=list(particles))

    @staticmethod
    def _stack_particles(particles) -> dict:
        n = len(particles)
        return {
            'positions': np.array([p.position for p in particles], dtype=float).reshape(n, 2),
            'initial_offsets': np.array([p.initial_offset for p in particles], dtype=float).reshape(n, 2),
            'velocities': np.array([p.velocity for p in particles], dtype=float).reshape(n, 2),
            'sizes': np.array([p.size for p in particles], dtype=float),
            'colors': np.array([p.color for p in particles], dtype=float).reshape(n, 3),
            'phase_offsets': np.array([p.phase_offset for p in particles], dtype=float),
        }

    def __len__(self):
        return self.num_particles

    def particle(self, index: int) -> Particle:
        """Returns a copy of particle `index` as a Particle record."""
        return Particle(
            position=self.positions[index].copy(),
            initial_offset=self.initial_offsets[index].copy(),
            velocity=self.velocities[index].copy(),
            size=self.sizes[index],
            phase_offset=self.phase_offsets[index],
            color=self.colors[index],
        )

    def get_heartbeat(self) -> float:
        return float(heartbeat_envelope(self.phase))

    def update(self):
        """
        Runs one simulation step.
        The global phase advances first; the heartbeat envelope and the
        slow global wave are derived from it once and shared by every
        particle. The velocity jitter is drawn here from the injected RNG
        so the kernel itself stays deterministic.
        """
        self.phase += constants.PHASE_INCREMENT
        heartbeat = heartbeat_envelope(self.phase)
        global_wave = np.sin(self.phase * 0.5) * constants.GLOBAL_WAVE_AMPLITUDE

        jitter = self.rng.random((self.num_particles, 2)) - 0.5

        _step_particles_jit(
            self.positions,
            self.initial_offsets,
            self.velocities,
            self.phase_offsets,
            self.colors,
            jitter,
            self.phase,
            heartbeat,
            global_wave,
            constants.HEART_SIZE
        )
        self.frame_count += 1

    def render_radii(self, elapsed_time: float) -> np.ndarray:
        """
        Per-particle draw radius, pulsing with wall-clock time:
        size * (1 + 0.2 * sin(2 * elapsed_time + phase_offset)).
        """
        return self.sizes * (
            1.0 + constants.RADIUS_PULSE_AMPLITUDE
            * np.sin(constants.RADIUS_PULSE_FREQUENCY * elapsed_time + self.phase_offsets)
        )

    def draw(self, screen: pygame.Surface, elapsed_time: float):
        """
        Clears the screen and draws every particle as a filled circle.
        Non-finite values from the physics are sanitized before they reach pygame.
        """
        screen.fill(constants.BLACK)

        width, height = screen.get_size()
        sane_positions = np.nan_to_num(self.positions, nan=0.0, posinf=0.0, neginf=0.0)
        centers = np.rint(to_screen(sane_positions, width, height)).astype(int)
        radii = np.maximum(np.rint(self.render_radii(elapsed_time)), constants.MIN_DRAW_RADIUS).astype(int)
        rgb = (np.clip(np.nan_to_num(self.colors, nan=0.0), 0.0, 1.0) * 255).astype(int)

        for center, radius, color in zip(centers.tolist(), radii.tolist(), rgb.tolist()):
            pygame.draw.circle(screen, color, center, radius)

    def get_mean_speed(self) -> float:
        """Mean |velocity| over the swarm."""
        if self.num_particles == 0:
            return 0.0
        return float(np.mean(np.hypot(self.velocities[:, 0], self.velocities[:, 1])))

    def get_max_target_distance(self) -> float:
        """
        Largest distance between a particle and its target on the curve.
        Tracks how far the jitter pushes particles beyond the containment radius.
        """
        if self.num_particles == 0:
            return 0.0
        targets = heart_point(self.initial_offsets[:, 0])
        diffs = targets - self.positions
        return float(np.max(np.hypot(diffs[:, 0], diffs[:, 1])))
