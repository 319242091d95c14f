[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "socmonitor"
version = "0.1.0"
description = "Battery state-of-charge estimation with an extended Kalman filter, plus an SSD1306 OLED frame-buffer model"
requires-python = ">=3.10"
keywords = ["battery", "state of charge", "kalman filter", "ekf", "ssd1306", "oled", "adc"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
socmonitor = "socmonitor.monitor:main"

[tool.hatch.build.targets.wheel]
packages = ["socmonitor"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
