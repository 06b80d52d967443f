"""sketchbridge: drive the Arduino toolchain and keep C/C++ include paths in sync."""

__version__ = "0.1.0"
