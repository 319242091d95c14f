"""Frame-buffered driver for SSD1306 monochrome OLED controllers over I2C."""

import math
from enum import IntEnum

from socmonitor.font import FONT_8X5


class Command(IntEnum):
    """SSD1306 command bytes."""

    SET_CONTRAST = 0x81
    SET_ENTIRE_ON = 0xA4
    SET_NORM_INV = 0xA6
    SET_DISP = 0xAE
    SET_MEM_ADDR = 0x20
    SET_COL_ADDR = 0x21
    SET_PAGE_ADDR = 0x22
    SET_DISP_START_LINE = 0x40
    SET_SEG_REMAP = 0xA0
    SET_MUX_RATIO = 0xA8
    SET_COM_OUT_DIR = 0xC0
    SET_DISP_OFFSET = 0xD3
    SET_COM_PIN_CFG = 0xDA
    SET_DISP_CLK_DIV = 0xD5
    SET_PRECHARGE = 0xD9
    SET_VCOM_DESEL = 0xDB
    SET_CHARGE_PUMP = 0x8D


class I2CError(OSError):
    """A transfer to the display was not acknowledged or timed out."""


_COMMAND_PREFIX = 0x00
_DATA_PREFIX = 0x40
_BMP_HEADER_SIZE = 54


class SSD1306:
    """Display state plus a page-organised frame buffer.

    ``bus`` is any object with ``write(address, data)``; it should raise
    OSError (or I2CError) when a transfer fails.
    """

    def __init__(self, width, height, address, bus, external_vcc=False):
        self.width = width
        self.height = height
        self.pages = height // 8
        self.address = address
        self.bus = bus
        self.external_vcc = external_vcc
        self.buffer = bytearray(self.pages * self.width)

        init_sequence = (
            Command.SET_DISP,
            Command.SET_DISP_CLK_DIV, 0x80,
            Command.SET_MUX_RATIO, height - 1,
            Command.SET_DISP_OFFSET, 0x00,
            Command.SET_DISP_START_LINE,
            Command.SET_CHARGE_PUMP, 0x10 if external_vcc else 0x14,
            Command.SET_SEG_REMAP | 0x01,
            Command.SET_COM_OUT_DIR | 0x08,
            Command.SET_COM_PIN_CFG, 0x02 if width > 2 * height else 0x12,
            Command.SET_CONTRAST, 0xFF,
            Command.SET_PRECHARGE, 0x22 if external_vcc else 0xF1,
            Command.SET_VCOM_DESEL, 0x30,
            Command.SET_ENTIRE_ON,
            Command.SET_NORM_INV,
            Command.SET_DISP | 0x01,
            Command.SET_MEM_ADDR, 0x00,
        )
        for value in init_sequence:
            self._command(value)

    def _transfer(self, data, name):
        try:
            self.bus.write(self.address, bytes(data))
        except I2CError:
            raise
        except OSError as exc:
            raise I2CError(f"[{name}] transfer to 0x{self.address:02X} failed: {exc}") from exc

    def _command(self, value):
        self._transfer((_COMMAND_PREFIX, int(value) & 0xFF), "write")

    def poweroff(self):
        """Switch the panel off; RAM contents are kept."""
        self._command(Command.SET_DISP | 0x00)

    def poweron(self):
        """Switch the panel on."""
        self._command(Command.SET_DISP | 0x01)

    def contrast(self, val):
        """Set contrast, 0..255."""
        self._command(Command.SET_CONTRAST)
        self._command(val)

    def invert(self, inv):
        """Invert the display when the low bit of ``inv`` is set."""
        self._command(Command.SET_NORM_INV | (int(inv) & 1))

    def show(self):
        """Send the whole frame buffer to the display."""
        col_start, col_end = 0, self.width - 1
        if self.width == 64:
            col_start += 32
            col_end += 32
        for value in (Command.SET_COL_ADDR, col_start, col_end,
                      Command.SET_PAGE_ADDR, 0, self.pages - 1):
            self._command(value)
        self._transfer(bytes((_DATA_PREFIX,)) + bytes(self.buffer), "show")

    def clear(self):
        """Blank the frame buffer."""
        self.buffer[:] = bytes(len(self.buffer))

    def _locate(self, x, y):
        if not (0 <= x < self.width and 0 <= y < self.height):
            return None
        return x + self.width * (y >> 3), 1 << (y & 0x07)

    def get_pixel(self, x, y):
        """True if the pixel is lit; False outside the display."""
        location = self._locate(x, y)
        if location is None:
            return False
        index, mask = location
        return bool(self.buffer[index] & mask)

    def clear_pixel(self, x, y):
        """Turn a pixel off; positions outside the display are ignored."""
        location = self._locate(x, y)
        if location is not None:
            index, mask = location
            self.buffer[index] &= ~mask & 0xFF

    def draw_pixel(self, x, y):
        """Turn a pixel on; positions outside the display are ignored."""
        location = self._locate(x, y)
        if location is not None:
            index, mask = location
            self.buffer[index] |= mask

    def draw_line(self, x1, y1, x2, y2):
        """Draw a straight line between two points, inclusive."""
        if x1 > x2:
            x1, x2 = x2, x1
            y1, y2 = y2, y1

        if x1 == x2:
            for y in range(min(y1, y2), max(y1, y2) + 1):
                self.draw_pixel(x1, y)
            return

        slope = (y2 - y1) / (x2 - x1)
        for x in range(x1, x2 + 1):
            self.draw_pixel(x, math.trunc(slope * (x - x1) + y1))

    def clear_square(self, x, y, width, height):
        """Turn off a filled rectangle."""
        for i in range(width):
            for j in range(height):
                self.clear_pixel(x + i, y + j)

    def draw_square(self, x, y, width, height):
        """Draw a filled rectangle."""
        for i in range(width):
            for j in range(height):
                self.draw_pixel(x + i, y + j)

    def draw_empty_square(self, x, y, width, height):
        """Draw a rectangle outline whose far edges lie at x+width and y+height."""
        self.draw_line(x, y, x + width, y)
        self.draw_line(x, y + height, x + width, y + height)
        self.draw_line(x, y, x, y + height)
        self.draw_line(x + width, y, x + width, y + height)

    def draw_char_with_font(self, x, y, scale, font, c):
        """Draw one character; characters missing from the font are skipped."""
        if not font.covers(c):
            return
        rows = font.parts_per_line * 8
        for column_index, column in enumerate(font.glyph(c)):
            for row in range(rows):
                if column >> row & 1:
                    self.draw_square(x + column_index * scale, y + row * scale, scale, scale)

    def draw_char(self, x, y, scale, c):
        """Draw one character with the built-in 8x5 font."""
        self.draw_char_with_font(x, y, scale, FONT_8X5, c)

    def draw_string_with_font(self, x, y, scale, font, s):
        """Draw text left to right starting at (x, y)."""
        step = font.advance * scale
        for offset, char in enumerate(s):
            self.draw_char_with_font(x + offset * step, y, scale, font, char)

    def draw_string(self, x, y, scale, s):
        """Draw text with the built-in 8x5 font."""
        self.draw_string_with_font(x, y, scale, FONT_8X5, s)

    def bmp_show_image_with_offset(self, data, x_offset, y_offset):
        """Draw the dark pixels of an uncompressed 1-bit BMP file.

        Raises ValueError for data that is not such a file.
        """
        data = bytes(data)
        if len(data) < _BMP_HEADER_SIZE:
            raise ValueError("data is smaller than a BMP header")

        def field(offset, size, signed=False):
            return int.from_bytes(data[offset:offset + size], "little", signed=signed)

        pixel_offset = field(10, 4)
        info_size = field(14, 4)
        width = field(18, 4)
        height = field(22, 4, signed=True)
        bit_count = field(28, 2)
        compression = field(30, 4)

        if bit_count != 1:
            raise ValueError("BMP image is not monochrome")
        if compression != 0:
            raise ValueError("BMP image is compressed")

        table_start = 14 + info_size
        color_val = 0
        for index in range(2):
            entry = table_start + index * 4
            if not any(data[entry:entry + 3]):
                color_val = index
                break

        bytes_per_line = (width + 7) // 8
        if bytes_per_line & 3:
            bytes_per_line = (bytes_per_line & ~3) + 4

        rows = range(height - 1, -1, -1) if height > 0 else range(0, -height)
        for line, y in enumerate(rows):
            start = pixel_offset + line * bytes_per_line
            row = data[start:start + bytes_per_line]
            for x in range(width):
                if (row[x >> 3] >> (7 - (x & 7))) & 1 == color_val:
                    self.draw_pixel(x_offset + x, y_offset + y)

    def bmp_show_image(self, data):
        """Draw a 1-bit BMP at the top-left corner."""
        self.bmp_show_image_with_offset(data, 0, 0)