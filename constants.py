# constants.py

"""
Application Constants

This module defines static configuration values for the heart swarm.
These are not expected to change between simulation runs; the config file
only carries the run id, the master seed and logging settings.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable. Distances are in curve
  units, which map 1:1 onto logical pixels around the window center.
"""

import math

# Screen dimensions
WIDTH = 800  # Pixels
HEIGHT = 600  # Pixels

# Framerate
FPS = 60  # Frames per second

# Colors (RGB)
BLACK = (0, 0, 0)
RED = (255, 0, 0)

# Window Title
TITLE = "Heart Swarm"

# --- Heart geometry ---
HEART_SIZE = 250.0  # Overall half-width of the heart curve.
PARTICLE_COUNT = 20000
OUTLINE_THICKNESS = 30.0  # Radial spread of outline particles around the curve.
INTERIOR_PARTICLE_RATIO = 0.1  # Probability that a new particle fills the interior.
INTERIOR_FILL_RATIO = 0.9  # Interior radius as a fraction of HEART_SIZE.

TAU = 2.0 * math.pi

# --- Spawn distribution ---
SPAWN_VELOCITY_SCALE = 2.0
MIN_PARTICLE_SIZE = 0.5
MAX_PARTICLE_SIZE = 3.0
INITIAL_COLOR = (1.0, 0.0, 0.0)  # Float RGB, overwritten on the first step.

# --- Simulation step ---
PHASE_INCREMENT = 0.05  # Radians per frame. Ties animation speed to frame rate.
HEARTBEAT_EXPONENT = 0.3
HEARTBEAT_AMPLITUDE = 10.0
HEARTBEAT_SWELL = 0.2  # Fractional growth of the offset at full heartbeat.
GLOBAL_WAVE_AMPLITUDE = 5.0
JITTER_STRENGTH = 1.0
VELOCITY_DAMPING = 0.9
CONTAINMENT_RADIUS = OUTLINE_THICKNESS * 1.5
RESTORING_STRENGTH = 0.05

# Color Mapping for Visualization
# Speed and normalized distance from the center drive value and saturation.
COLOR_HUE = 0.0  # Always red.
COLOR_MIN_SATURATION = 0.9
COLOR_MAX_SATURATION = 1.0
COLOR_MAX_DISTANCE = 1.0  # In units of HEART_SIZE.
COLOR_MIN_VALUE = 0.7
COLOR_MAX_VALUE = 1.0
COLOR_MAX_SPEED = 5.0

# --- Rendering ---
RADIUS_PULSE_AMPLITUDE = 0.2
RADIUS_PULSE_FREQUENCY = 2.0  # Radians per second of wall-clock time.
MIN_DRAW_RADIUS = 1  # Pixels. pygame skips circles smaller than this.

# --- Diagnostics ---
LOG_INTERVAL_TICKS = 100
