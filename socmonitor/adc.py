"""Conversion of raw 12-bit ADC readings into battery measurements."""

import math

ADC_FULL_SCALE = 4096
ADC_REFERENCE_VOLTAGE = 3.3
VOLTAGE_DIVIDER_GAIN = 2.0

R1 = 101000
VCC = 5
A_NTC = 3.70011733e-04
B_NTC = 2.53164380e-04
C_NTC = 2.88489489e-08

CURRENT_ZERO_VOLTAGE = 2.5
CURRENT_SENSITIVITY = 0.066

ABSOLUTE_ZERO_CELSIUS = 273.15
_FALLBACK_RESISTANCE = 10000.0


def _pin_voltage(adc_value):
    """Voltage seen on the ADC pin for a raw reading."""
    return (adc_value / ADC_FULL_SCALE) * ADC_REFERENCE_VOLTAGE


def _ln(value):
    """Natural logarithm that yields -inf or nan instead of raising."""
    if value > 0:
        return math.log(value)
    if value == 0:
        return -math.inf
    return math.nan


def adc_to_voltage(adc_value):
    """Battery terminal voltage behind a 1:2 divider.

    Raises ValueError for readings outside 0..4096.
    """
    if adc_value < 0 or adc_value > ADC_FULL_SCALE:
        raise ValueError(f"ADC reading out of range: {adc_value}")
    return (adc_value * VOLTAGE_DIVIDER_GAIN / ADC_FULL_SCALE) * ADC_REFERENCE_VOLTAGE


def adc_to_temperature(adc_value):
    """Temperature in degrees Celsius from an NTC divider reading (Steinhart-Hart)."""
    voltage = _pin_voltage(adc_value)

    if voltage - R1 != 0:
        resistance = VCC * R1 / voltage - R1 if voltage != 0 else math.inf
    else:
        resistance = _FALLBACK_RESISTANCE

    log_r = _ln(resistance)
    denominator = A_NTC + B_NTC * log_r + C_NTC * log_r**3
    kelvin = 1 / denominator if denominator != 0 else ABSOLUTE_ZERO_CELSIUS

    if math.isnan(kelvin):
        kelvin = 0.0

    return kelvin - ABSOLUTE_ZERO_CELSIUS


def adc_to_current(adc_value):
    """Current in amperes from a Hall-effect sensor centred on 2.5 V."""
    voltage = _pin_voltage(adc_value)
    return (voltage - CURRENT_ZERO_VOLTAGE) / CURRENT_SENSITIVITY