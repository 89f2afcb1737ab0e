
# Baseline model fitted on the January 2026 reference window (thermostat at
# the legal minimum of 60°F):  usage = 50.75 - 0.888 * temp_f
MODEL_INTERCEPT: float = 50.75            # kWh/day
MODEL_SLOPE: float = -0.888               # kWh per °F

UNIT_RATE: float = 0.2061                 # $/kWh
MIN_BASELINE_USAGE: float = 5.0           # kWh/day
MAX_BASELINE_USAGE: float = 50.0          # kWh/day

MAX_RANGE_SPAN_DAYS: int = 365

# Default occupancy: both home, B controls the thermostat
DEFAULT_CONTROLLER: str = "B"

# Loader sanity range for mean temperature (°F); outside it is a warning only
MIN_PLAUSIBLE_TEMP: float = -50.0
MAX_PLAUSIBLE_TEMP: float = 150.0
