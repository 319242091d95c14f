# socmonitor

Estimates the state of charge (SoC) of a lithium cell from voltage, current
and temperature readings. An extended Kalman filter runs over a first-order
RC cell model. The model's parameters come from temperature/SoC lookup
tables. The package also has an in-memory model of an SSD1306 monochrome OLED
controller. It draws into a frame buffer and sends commands and frames to an
I2C writer that you supply.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `socmonitor.adc` turns raw 12-bit ADC readings (0..4096) into physical values.
  - `adc_to_voltage` gives the battery voltage behind a 1:2 divider. It raises
    `ValueError` when the reading is out of range.
  - `adc_to_current` gives amperes from a Hall-effect sensor centred on 2.5 V,
    at 0.066 V/A.
  - `adc_to_temperature` gives degrees Celsius from an NTC divider, using the
    Steinhart–Hart equation.
- `socmonitor.battery_model` holds the R0, R1 and C1 lookup tables
  (`TEMP_LUT`, `SOC_LUT`, `F_R0`, `F_R1`, `F_C1`) and the open-circuit voltage
  polynomial with its derivative (`SOC_OCV`, `D_SOC_OCV`).
  - `interpolate` is a linear interpolation.
  - `find_nearest_neighbors` and `find_value` do the bilinear table lookup.
    Outside the grid they extrapolate across the whole table.
  - `polyval` evaluates a polynomial, highest-order coefficient first.
  - `battery_model(current, v1, temperature, soc, nc)` returns a `ModelOutput`.
    It holds the state matrices `a`, `b` and `c` and the predicted terminal
    voltage `vt`. `nc` is the capacity in Ah.
- `socmonitor.ekf` is the filter.
  - `apriori` is the prediction step. It returns the new state and covariance.
  - `aposteriori` is the correction step. It returns the state, covariance and
    Kalman gain, and raises `ZeroDivisionError` if the innovation covariance is
    zero.
  - `ekf_soc_opt` runs one full cycle and returns an `EkfResult` with `x`, `p`,
    `kg`, `vt`, `vt_error` and `soc`. SoC is clamped to 0..1 after each step.
    Its `nc` argument is given in tenths of Ah.
  - `SocEstimator` keeps the filter state from one call of `step(current,
    voltage, temperature)` to the next. Its defaults are `DEFAULT_NC`,
    `DEFAULT_P`, `DEFAULT_Q`, `DEFAULT_R`, and a start at SoC 1.0.
- `socmonitor.font` provides `Font`, a fixed-width bitmap font.
  - `Font.from_table` builds a font from a byte table with a header.
  - `covers` and `glyph` check for a character and return its columns.
  - `FONT_8X5` is the built-in printable-ASCII font.
- `socmonitor.ssd1306` provides `SSD1306(width, height, address, bus,
  external_vcc=False)`.
  - `bus` is any object with `write(address, data)`. The constructor sends the
    initialisation sequence.
  - Drawing methods: `draw_pixel`, `clear_pixel`, `get_pixel`, `draw_line`,
    `draw_square`, `clear_square`, `draw_empty_square`, `draw_char`,
    `draw_string` (with `_with_font` variants), and `bmp_show_image` /
    `bmp_show_image_with_offset` for uncompressed 1-bit BMP data.
    The BMP methods raise `ValueError` for anything else.
  - Panel control: `clear`, `show`, `poweron`, `poweroff`, `contrast`, `invert`.
  - An `OSError` raised by the bus comes back as `I2CError`.
  - `Command` lists the controller's command bytes.
- `socmonitor.monitor` ties these together.
  - `BatteryMonitor.sample(voltage_raw, current_raw, temperature_raw)` converts
    one set of readings, steps the filter and returns a `SensorData`, with SoC
    as a percentage.
  - `BatteryMonitor.render(display)` draws four text lines and calls `show`.
  - `format_lines` and `format_report` build the display text and the log line.

## Example

```python
from socmonitor.ekf import SocEstimator

estimator = SocEstimator()
result = estimator.step(current=0.5, voltage=3.9, temperature=25.0)
print(result.soc)  # estimated SoC as a fraction 0..1
```

From raw ADC readings:

```python
from socmonitor.monitor import BatteryMonitor, format_lines

monitor = BatteryMonitor()
data = monitor.sample(2400, 3100, 1800)
for line in format_lines(data):
    print(line)
```

## Command line

```
socmonitor [--show] [input]
```

The command reads samples from `input`, or from standard input if no file is
given. Each sample is a line of three raw readings in the order voltage,
current, temperature, separated by spaces or commas. Blank lines are skipped.

For each sample it prints the voltage, temperature, current and estimated SoC.
With `--show` it also prints the 128x64 display frame as `#` and `.`
characters.

A malformed line or a voltage reading out of range ends the run. The error
goes to standard error and the exit status is 1.

## What it does not do

The package does not read an ADC and does not open an I2C bus. Readings come
in as numbers. Display output goes to whatever `bus` object you pass to
`SSD1306`; the command line passes one that discards the data. There is no
periodic sampling loop; call `BatteryMonitor.sample` at the rate you need.