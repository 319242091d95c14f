"""Battery monitor: sample raw readings, estimate SoC and show the result."""

import argparse
import sys
from dataclasses import dataclass, field

from socmonitor.adc import adc_to_current, adc_to_temperature, adc_to_voltage
from socmonitor.ekf import SocEstimator
from socmonitor.ssd1306 import SSD1306

SCREEN_WIDTH = 128
SCREEN_HEIGHT = 64
OLED_ADDR = 0x3C

_LINE_POSITIONS = (10, 20, 30, 40)
_TEXT_SCALE = 1


@dataclass
class SensorData:
    """Latest converted measurements; ``soc`` is a percentage."""

    voltage: float = 0.0
    temperature: float = 0.0
    current: float = 0.0
    soc: float = 0.0


def format_lines(data):
    """Text lines shown on the display for one set of measurements."""
    return [
        f"V: {data.voltage:.3f} V",
        f"T: {data.temperature:.2f} C",
        f"I: {data.current:.4f} A",
        f"SoC: {data.soc:.1f}%",
    ]


def format_report(data, soc_fraction):
    """One log line for a sample; ``soc_fraction`` is SoC in 0..1."""
    return (
        f"Voltage: {data.voltage:f}, Temperature: {data.temperature:f}, "
        f"Current: {data.current:f}, SoC:  {soc_fraction:f}"
    )


@dataclass
class BatteryMonitor:
    """Runs the SoC filter on raw ADC readings and keeps the latest data."""

    estimator: SocEstimator = field(default_factory=SocEstimator)
    battery: SensorData = field(default_factory=SensorData)

    def sample(self, voltage_raw, current_raw, temperature_raw):
        """Convert one set of raw readings, update the filter and return the data.

        Raises ValueError when the voltage reading is out of range.
        """
        voltage = adc_to_voltage(voltage_raw)
        current = adc_to_current(current_raw)
        temperature = adc_to_temperature(temperature_raw)

        self.estimator.step(current, voltage, temperature)

        self.battery = SensorData(
            voltage=voltage,
            temperature=temperature,
            current=current,
            soc=self.estimator.soc * 100,
        )
        return self.battery

    def render(self, display):
        """Draw the latest data on ``display`` and push it to the panel."""
        display.clear()
        for y, line in zip(_LINE_POSITIONS, format_lines(self.battery)):
            display.draw_string(0, y, _TEXT_SCALE, line)
        display.show()


class _DiscardingBus:
    """Bus that accepts every transfer; used to render frames off-device."""

    def write(self, address, data):
        return len(data)


def _frame_text(display):
    return "\n".join(
        "".join("#" if display.get_pixel(x, y) else "." for x in range(display.width))
        for y in range(display.height)
    )


def _parse_sample(line):
    fields = line.replace(",", " ").split()
    if len(fields) != 3:
        raise ValueError(f"expected three readings, got {len(fields)}: {line.strip()!r}")
    return tuple(int(value) for value in fields)


def main(argv=None):
    """Read raw ADC triples (voltage, current, temperature) and report SoC."""
    parser = argparse.ArgumentParser(
        prog="socmonitor",
        description="Estimate battery state of charge from raw ADC readings.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        type=argparse.FileType("r"),
        default=sys.stdin,
        help="file of 'voltage current temperature' readings, one sample per line",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="print the display frame after each sample",
    )
    args = parser.parse_args(argv)

    monitor = BatteryMonitor()
    display = SSD1306(SCREEN_WIDTH, SCREEN_HEIGHT, OLED_ADDR, _DiscardingBus()) if args.show else None

    with args.input as stream:
        for number, line in enumerate(stream, start=1):
            if not line.strip():
                continue
            try:
                readings = _parse_sample(line)
                data = monitor.sample(*readings)
            except ValueError as exc:
                print(f"line {number}: {exc}", file=sys.stderr)
                return 1
            print(format_report(data, monitor.estimator.soc))
            if display is not None:
                monitor.render(display)
                print(_frame_text(display))
    return 0