import re

import pytest

from socmonitor.adc import adc_to_current, adc_to_temperature, adc_to_voltage
from socmonitor.monitor import (
    BatteryMonitor,
    SensorData,
    format_lines,
    format_report,
    main,
)
from socmonitor.ssd1306 import SSD1306


class RecordingBus:
    def __init__(self):
        self.writes = []

    def write(self, address, data):
        self.writes.append((address, bytes(data)))


class RecordingDisplay:
    def __init__(self):
        self.calls = []

    def clear(self):
        self.calls.append(("clear",))

    def draw_string(self, x, y, scale, s):
        self.calls.append(("draw_string", x, y, scale, s))

    def show(self):
        self.calls.append(("show",))


def test_format_lines_pinned():
    data = SensorData(voltage=3.7, temperature=25.0, current=0.5, soc=80.0)
    assert format_lines(data) == ["V: 3.700 V", "T: 25.00 C", "I: 0.5000 A", "SoC: 80.0%"]


def test_format_lines_round_trip():
    data = SensorData(voltage=4.123, temperature=-3.25, current=-1.2345, soc=55.5)
    voltage, temperature, current, soc = format_lines(data)
    assert float(voltage[len("V: "):-2]) == pytest.approx(4.123)
    assert float(temperature[len("T: "):-2]) == pytest.approx(-3.25)
    assert float(current[len("I: "):-2]) == pytest.approx(-1.2345)
    assert float(soc[len("SoC: "):-1]) == pytest.approx(55.5)


def test_format_report_round_trip():
    data = SensorData(voltage=3.9, temperature=21.5, current=0.25, soc=90.0)
    report = format_report(data, 0.9)
    match = re.fullmatch(
        r"Voltage: (\S+), Temperature: (\S+), Current: (\S+), SoC:  (\S+)", report
    )
    assert match is not None
    values = [float(v) for v in match.groups()]
    assert values == pytest.approx([3.9, 21.5, 0.25, 0.9])
    assert all(len(v.split(".")[1]) == 6 for v in match.groups())


def test_sample_converts_readings():
    monitor = BatteryMonitor()
    data = monitor.sample(2200, 3100, 1500)
    assert data.voltage == pytest.approx(adc_to_voltage(2200))
    assert data.current == pytest.approx(adc_to_current(3100))
    assert data.temperature == pytest.approx(adc_to_temperature(1500))
    assert monitor.battery == data


def test_sample_soc_is_percentage_of_estimator():
    monitor = BatteryMonitor()
    for _ in range(5):
        data = monitor.sample(2300, 3103, 1500)
        assert data.soc == pytest.approx(monitor.estimator.soc * 100)
        assert 0.0 <= data.soc <= 100.0


def test_sample_rejects_out_of_range_voltage():
    monitor = BatteryMonitor()
    with pytest.raises(ValueError):
        monitor.sample(5000, 2048, 2048)
    assert monitor.battery == SensorData()


def test_render_call_order():
    monitor = BatteryMonitor()
    monitor.battery = SensorData(voltage=3.7, temperature=25.0, current=0.5, soc=80.0)
    display = RecordingDisplay()
    monitor.render(display)
    assert display.calls[0] == ("clear",)
    assert display.calls[-1] == ("show",)
    draws = display.calls[1:-1]
    assert [call[2] for call in draws] == [10, 20, 30, 40]
    assert [call[4] for call in draws] == format_lines(monitor.battery)
    assert all(call[1] == 0 and call[3] == 1 for call in draws)


def test_render_on_real_display_sends_frame():
    bus = RecordingBus()
    display = SSD1306(128, 64, 0x3C, bus)
    monitor = BatteryMonitor()
    monitor.sample(2300, 3103, 1500)
    bus.writes.clear()
    monitor.render(display)
    lit = [(x, y) for x in range(128) for y in range(64) if display.get_pixel(x, y)]
    assert lit
    assert all(10 <= y < 48 for _, y in lit)
    address, payload = bus.writes[-1]
    assert address == 0x3C
    assert payload[0] == 0x40
    assert len(payload) == 1 + 128 * 8


def test_main_reports_each_sample(tmp_path, capsys):
    source = tmp_path / "samples.txt"
    source.write_text("2300 3103 1500\n\n2290,3103,1500\n")
    assert main([str(source)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert all(line.startswith("Voltage: ") for line in lines)


def test_main_show_prints_frame(tmp_path, capsys):
    source = tmp_path / "samples.txt"
    source.write_text("2300 3103 1500\n")
    assert main([str(source), "--show"]) == 0
    lines = capsys.readouterr().out.splitlines()
    frame = [line for line in lines if set(line) <= {"#", "."} and line]
    assert len(frame) == 64
    assert all(len(line) == 128 for line in frame)
    assert any("#" in line for line in frame)


def test_main_rejects_malformed_line(tmp_path, capsys):
    source = tmp_path / "samples.txt"
    source.write_text("2300 3103\n")
    assert main([str(source)]) == 1
    captured = capsys.readouterr()
    assert "line 1" in captured.err
    assert captured.out == ""


def test_main_rejects_out_of_range_reading(tmp_path, capsys):
    source = tmp_path / "samples.txt"
    source.write_text("2300 3103 1500\n9000 3103 1500\n")
    assert main([str(source)]) == 1
    captured = capsys.readouterr()
    assert "line 2" in captured.err
    assert len(captured.out.splitlines()) == 1