"""Platform name normalization for PlatformIO environments."""

from __future__ import annotations

from pioconsole.config.models import DiscoveredEnvironment


def normalize_platform(platform: str) -> str:
    """Map a PlatformIO platform string to a short name (esp32, esp8266, avr, ...)."""
    value = platform.lower()
    if "espressif32" in value or value == "esp32":
        return "esp32"
    if "espressif8266" in value or value == "esp8266":
        return "esp8266"
    if "atmelavr" in value or value == "avr":
        return "avr"
    return platform


def platform_from_environment(environment: DiscoveredEnvironment) -> str:
    return normalize_platform(environment.platform)


def platform_key(platform: str) -> str:
    """Key used for platform-conditional defines (``__AVR__``, ``ESP32``, ...)."""
    upper = platform.upper()
    return "__AVR__" if upper == "AVR" else upper.replace("ESPRESSIF", "ESP")


def platform_label(platform: str) -> str:
    value = platform.lower()
    if "espressif32" in value or value == "esp32":
        return "ESP32"
    if "espressif8266" in value or value == "esp8266":
        return "ESP8266"
    if "atmelavr" in value or value == "avr":
        return "AVR"
    if value == "native":
        return "Native"
    return platform
