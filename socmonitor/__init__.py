"""Battery state-of-charge estimation, cell model, bitmap font and SSD1306 frame-buffer model."""

__version__ = "0.1.0"
__all__ = ["adc", "battery_model", "ekf", "font", "ssd1306", "monitor"]