#!/usr/bin/env python3
"""
Default parameters for caustic simulations.
The command line overrides any of these.
"""

# Refractive index used to generate the lens (incident / transmitted)
ETA = 1.457

# The built-in demo lens is entered from the air side
DEMO_ETA = 1.0 / ETA

# Beam travels toward -z; the receiver plane is {z = distance}
PROPAGATION_AXIS = "z"

# Nominal display space the projected points are drawn into
DISPLAY_SIZE = 256
WINDOW_SIZE = (256, 256)

# Receiver-plane distance increments for the interactive viewer
SMALL_STEP = 0.1
BIG_STEP = 1.0

PPM_FILENAME = "caustics.ppm"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%H:%M:%S"
