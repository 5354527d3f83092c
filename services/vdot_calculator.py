"""
Training Pace Calculator - Based on Daniels' Running Formula

Fitness scores, training paces, race-time equivalents and condition
corrections, all from the public oxygen-cost and %VO2max-duration equations
of Daniels & Gilbert. No lookup tables.

Used by the race prediction engine as its VDOT curve:
- race time -> VDOT (optionally corrected for weather and elevation)
- VDOT -> predicted race time
- VDOT -> training pace zones
- weather pace penalty, easy pace -> VDOT
"""
from typing import Dict, Optional
import math


METERS_PER_MILE = 1609.34

VDOT_FLOOR = 15.0
VDOT_CEILING = 85.0

# Standard race distances in meters
STANDARD_DISTANCES = {
    "marathon": 42195,
    "half_marathon": 21097.5,
    "15k": 15000,
    "10k": 10000,
    "5k": 5000,
    "3k": 3000,
    "1mi": 1609.34,
}

# %VO2max anchors for each training zone
PACE_ZONE_INTENSITIES = {
    "recovery": 0.55,
    "easy": 0.65,
    "general_aerobic": 0.70,
    "marathon": 0.78,
    "half_marathon": 0.83,
    "tempo": 0.85,
    "threshold": 0.88,
    "vo2max": 0.95,
    "interval": 0.97,
    "repetition": 1.05,
}

EASY_PACE_INTENSITY = 0.65

# Optimal racing temperature (°F); recreational runners peak around 43-50°F
OPTIMAL_TEMP_F = 45

# Never credit more than 15% of the raw time back for conditions
MAX_CONDITION_CORRECTION = 0.15


def _oxygen_cost(velocity_m_per_min: float) -> float:
    """VO2 (ml/kg/min) at a running velocity in m/min."""
    return -4.60 + 0.182258 * velocity_m_per_min + 0.000104 * velocity_m_per_min ** 2


def _sustainable_fraction(time_minutes: float) -> float:
    """Fraction of VO2max sustainable for a race of this duration."""
    return 0.8 + 0.1894393 * math.exp(-0.012778 * time_minutes) + \
        0.2989558 * math.exp(-0.1932605 * time_minutes)


def _calculate_vdot_for_time(distance_meters: float, time_seconds: float) -> float:
    """
    Raw (unclamped, unrounded) VDOT for a distance and time.

    VDOT = (-4.60 + 0.182258*V + 0.000104*V²) / (0.8 + 0.1894393*e^(-0.012778*T) + 0.2989558*e^(-0.1932605*T))

    Where V = velocity in m/min, T = time in minutes
    """
    time_minutes = time_seconds / 60.0
    velocity = distance_meters / time_minutes
    denominator = _sustainable_fraction(time_minutes)
    if denominator <= 0:
        return 0.0
    return _oxygen_cost(velocity) / denominator


def calculate_vdot_from_race_time(distance_meters: float, time_seconds: float) -> Optional[float]:
    """
    Calculate VDOT from a race time and distance.

    Args:
        distance_meters: Race distance in meters
        time_seconds: Race time in seconds

    Returns:
        VDOT clamped to the 15-85 range and rounded to 0.1,
        or None for non-positive inputs
    """
    if distance_meters <= 0 or time_seconds <= 0:
        return None

    vdot = _calculate_vdot_for_time(distance_meters, time_seconds)
    clamped = max(VDOT_FLOOR, min(VDOT_CEILING, vdot))
    return round(clamped, 1)


def elevation_pace_correction(elevation_gain_ft: float, distance_miles: float) -> int:
    """Seconds per mile penalty for climbing: ~12 sec/mi per 100 ft/mi of gain."""
    if distance_miles <= 0 or elevation_gain_ft <= 0:
        return 0
    gain_per_mile = elevation_gain_ft / distance_miles
    return round((gain_per_mile / 100) * 12)


def get_weather_pace_adjustment(
    temperature_f: float,
    humidity_pct: float,
    dew_point_f: Optional[float] = None
) -> int:
    """
    Seconds per mile to add for weather conditions (positive = slower).

    Conservative by intent: understates rather than overstates the heat cost.
    - Mild zone 45-70°F: ~0.4 sec/mi per °F
    - Warm zone 70-85°F: ~1.0 sec/mi per °F
    - Severe zone >85°F: ~1.5 sec/mi per °F
    - Humidity only matters once the air is warm
    - Cold below 35°F: minor penalty, mostly mitigated by clothing
    """
    adjustment = 0.0

    if temperature_f > OPTIMAL_TEMP_F:
        if temperature_f > 85:
            adjustment += (70 - OPTIMAL_TEMP_F) * 0.4
            adjustment += (85 - 70) * 1.0
            adjustment += (temperature_f - 85) * 1.5
        elif temperature_f > 70:
            adjustment += (70 - OPTIMAL_TEMP_F) * 0.4
            adjustment += (temperature_f - 70) * 1.0
        else:
            adjustment += (temperature_f - OPTIMAL_TEMP_F) * 0.4

        if temperature_f > 65 and humidity_pct > 50:
            adjustment += (humidity_pct - 50) * 0.1
        elif temperature_f > 55 and humidity_pct > 60:
            adjustment += (humidity_pct - 60) * 0.05
    elif temperature_f < 35:
        adjustment += (35 - temperature_f) * 0.2

    # Oppressive dew point is a separate signal
    if dew_point_f is not None and dew_point_f > 60:
        adjustment += (dew_point_f - 60) * 0.3

    return round(adjustment)


def calculate_adjusted_vdot(
    distance_meters: float,
    time_seconds: float,
    weather_temp_f: Optional[float] = None,
    weather_humidity_pct: Optional[float] = None,
    elevation_gain_ft: Optional[float] = None
) -> Optional[float]:
    """
    VDOT for a performance corrected to flat ground and ideal weather.

    The per-mile weather and elevation penalties are taken off the finish
    time before the VDOT is computed, so a hot or hilly race scores higher
    than its raw time suggests. Without condition data this is exactly
    calculate_vdot_from_race_time.
    """
    if distance_meters <= 0 or time_seconds <= 0:
        return None

    distance_miles = distance_meters / METERS_PER_MILE
    total_pace_adjustment = 0

    if weather_temp_f is not None and weather_humidity_pct is not None:
        total_pace_adjustment += get_weather_pace_adjustment(weather_temp_f, weather_humidity_pct)
    if elevation_gain_ft is not None and elevation_gain_ft > 0:
        total_pace_adjustment += elevation_pace_correction(elevation_gain_ft, distance_miles)

    if total_pace_adjustment <= 0:
        return calculate_vdot_from_race_time(distance_meters, time_seconds)

    corrected_time = time_seconds - total_pace_adjustment * distance_miles
    safe_time = max(corrected_time, time_seconds * (1 - MAX_CONDITION_CORRECTION))
    return calculate_vdot_from_race_time(distance_meters, safe_time)


def velocity_from_vdot(vdot: float, percent_vo2max: float) -> float:
    """
    Velocity (m/min) that costs vdot * percent_vo2max of oxygen.

    Solves 0.000104*v² + 0.182258*v + (-4.60 - VO2) = 0 for the positive root.
    """
    vo2 = vdot * percent_vo2max
    a = 0.000104
    b = 0.182258
    c = -4.60 - vo2
    discriminant = b * b - 4 * a * c
    return (-b + math.sqrt(discriminant)) / (2 * a)


def velocity_to_pace_seconds_per_mile(velocity_m_per_min: float) -> int:
    """Convert m/min to seconds per mile."""
    return round(METERS_PER_MILE / velocity_m_per_min * 60)


def calculate_pace_zones(vdot: float) -> Dict[str, int]:
    """
    Calculate all training paces from VDOT.

    Returns:
        Dictionary of zone name -> pace in seconds per mile, plus "vdot"
    """
    zones: Dict[str, int] = {}
    for zone, intensity in PACE_ZONE_INTENSITIES.items():
        zones[zone] = velocity_to_pace_seconds_per_mile(velocity_from_vdot(vdot, intensity))
    zones["vdot"] = vdot
    return zones


def estimate_vdot_from_easy_pace(easy_pace_seconds_per_mile: float) -> Optional[float]:
    """
    Estimate VDOT from an easy pace, assuming easy running is ~65% of VO2max.

    Args:
        easy_pace_seconds_per_mile: Pace in seconds per mile

    Returns:
        VDOT rounded to 0.1, or None for a non-positive pace
    """
    if easy_pace_seconds_per_mile <= 0:
        return None

    velocity = METERS_PER_MILE / (easy_pace_seconds_per_mile / 60)
    vdot = _oxygen_cost(velocity) / EASY_PACE_INTENSITY
    return round(vdot, 1)


def calculate_equivalent_race_time(vdot: float, target_distance_meters: float) -> Optional[Dict]:
    """
    Calculate equivalent race time for a target distance based on VDOT.

    Uses binary search to find the time that produces the target VDOT
    for the given distance using the Daniels formula.

    Args:
        vdot: VDOT score
        target_distance_meters: Target race distance in meters

    Returns:
        Dictionary with equivalent time and pace, or None if calculation fails
    """
    if vdot <= 0 or target_distance_meters <= 0:
        return None

    # Bounds wide enough for VDOT 15 over a marathon and VDOT 85 over a mile
    min_pace_per_km = 2.0   # minutes
    max_pace_per_km = 25.0  # minutes

    distance_km = target_distance_meters / 1000.0

    min_time_seconds = min_pace_per_km * 60 * distance_km
    max_time_seconds = max_pace_per_km * 60 * distance_km

    tolerance = 0.001
    max_iterations = 80

    time_seconds = (min_time_seconds + max_time_seconds) / 2
    for _ in range(max_iterations):
        mid_time = (min_time_seconds + max_time_seconds) / 2
        calculated_vdot = _calculate_vdot_for_time(target_distance_meters, mid_time)
        time_seconds = mid_time

        if abs(calculated_vdot - vdot) < tolerance:
            break

        # Higher VDOT = faster time, so if calculated > target, we need slower time
        if calculated_vdot > vdot:
            min_time_seconds = mid_time
        else:
            max_time_seconds = mid_time

    time_seconds = int(round(time_seconds))
    distance_miles = target_distance_meters / METERS_PER_MILE

    return {
        "distance_m": target_distance_meters,
        "time_seconds": time_seconds,
        "time_formatted": format_time(time_seconds),
        "pace_seconds_per_mile": round(time_seconds / distance_miles),
        "pace_mi": format_pace(time_seconds / distance_miles),
    }


def predict_race_time(vdot: float, distance_meters: float) -> Optional[int]:
    """
    Predicted race time in seconds for a VDOT and distance.

    Simple wrapper around calculate_equivalent_race_time that returns just the time.
    """
    result = calculate_equivalent_race_time(vdot, distance_meters)
    if result is None:
        return None
    return result.get("time_seconds")


def format_time(seconds: float) -> str:
    """Format seconds as H:MM:SS or M:SS."""
    total = int(round(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_pace(seconds_per_mile: float) -> str:
    """Format a per-mile pace as M:SS."""
    total = int(round(seconds_per_mile))
    return f"{total // 60}:{total % 60:02d}"
