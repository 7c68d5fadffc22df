"""GPIO pin validation backed by the backend's per-platform pin tables."""

from pioconsole.validation.pins import PinPurpose, PinValidation, PinValidator, parse_pin

__all__ = ["PinPurpose", "PinValidation", "PinValidator", "parse_pin"]
