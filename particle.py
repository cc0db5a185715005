# particle.py

import logging
import numpy as np
import constants
from heart_curve import heart_point

logger = logging.getLogger("heart_swarm")


def signed_sqrt(values):
    """
    Square root of the magnitude with the sign of the input kept.
    Outline radii are drawn from a signed interval, so a plain real sqrt
    would return NaN for half of them.
    """
    values = np.asarray(values, dtype=float)
    return np.sign(values) * np.sqrt(np.abs(values))


def sample_particles(num_particles: int, rng: np.random.Generator) -> dict:
    """
    Draws the initial state for a batch of particles in one vectorized pass.

    Data Contract:
    - Inputs:
        - num_particles (int): Number of particles to create. Must be >= 0.
        - rng (np.random.Generator): The injected random source.
    - Outputs: dict of arrays keyed by 'positions', 'initial_offsets',
      'velocities' (N, 2), 'sizes', 'phase_offsets' (N,) and 'colors' (N, 3).
    - Invariants: phase_offsets lie in [0, 2*pi). No value is NaN.
    """
    if num_particles < 0:
        raise ValueError(f"num_particles must be non-negative, got {num_particles}")

    n = num_particles
    is_interior = rng.random(n) < constants.INTERIOR_PARTICLE_RATIO
    angles = rng.random(n) * constants.TAU

    # Interior particles fill a disk with uniform area density; outline
    # particles spread across a band straddling the curve.
    interior_radii = np.sqrt(rng.random(n)) * constants.HEART_SIZE * constants.INTERIOR_FILL_RATIO
    outline_radii = constants.OUTLINE_THICKNESS * signed_sqrt(rng.random(n) - 0.5)
    radii = np.where(is_interior, interior_radii, outline_radii)

    offsets = np.column_stack((radii * np.cos(angles), radii * np.sin(angles)))
    positions = heart_point(angles).reshape(n, 2) + offsets
    velocities = (rng.random((n, 2)) - 0.5) * constants.SPAWN_VELOCITY_SCALE
    sizes = rng.uniform(constants.MIN_PARTICLE_SIZE, constants.MAX_PARTICLE_SIZE, n)
    phase_offsets = rng.random(n) * constants.TAU
    colors = np.tile(np.array(constants.INITIAL_COLOR, dtype=float), (n, 1))

    return {
        'positions': positions,
        'initial_offsets': offsets,
        'velocities': velocities,
        'sizes': sizes,
        'colors': colors,
        'phase_offsets': phase_offsets,
    }


class Particle:
    """
    A single particle record.

    ParticleSystem stores particles as parallel arrays; this class is the
    per-record view used to build a system from explicit particles and to
    inspect one particle at a time.

    initial_offset, size and phase_offset are fixed at creation. position,
    velocity and color are recomputed on every simulation step.
    """
    def __init__(self, position, initial_offset, velocity, size: float, phase_offset: float,
                 color=constants.INITIAL_COLOR):
        self.position = np.array(position, dtype=float)
        self.initial_offset = np.array(initial_offset, dtype=float)
        self.velocity = np.array(velocity, dtype=float)
        self.size = float(size)
        self.phase_offset = float(phase_offset)
        self.color = tuple(float(c) for c in color)

        if self.position.shape != (2,) or self.initial_offset.shape != (2,) or self.velocity.shape != (2,):
            raise ValueError("position, initial_offset and velocity must be 2D vectors")

    @property
    def speed(self) -> float:
        return float(np.hypot(self.velocity[0], self.velocity[1]))

    def __repr__(self):
        return (
            f"Particle(position={self.position.tolist()}, "
            f"initial_offset={self.initial_offset.tolist()}, "
            f"velocity={self.velocity.tolist()}, size={self.size:.3f}, "
            f"phase_offset={self.phase_offset:.3f}, color={self.color})"
        )


def create_particle(rng: np.random.Generator) -> Particle:
    """Creates one particle with the same distribution the swarm uses."""
    state = sample_particles(1, rng)
    particle = Particle(
        position=state['positions'][0],
        initial_offset=state['initial_offsets'][0],
        velocity=state['velocities'][0],
        size=state['sizes'][0],
        phase_offset=state['phase_offsets'][0],
        color=state['colors'][0],
    )
    logger.debug(f"Particle created: {particle}")
    return particle
