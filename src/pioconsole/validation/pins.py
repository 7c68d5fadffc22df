"""Pin checks: local parsing first, then the backend as the source of truth."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Literal

import pydantic
from pydantic import BaseModel

from pioconsole import backend as commands
from pioconsole.config.platform import normalize_platform
from pioconsole.core.gateway import CommandGateway
from pioconsole.core.notifications import NotificationScheduler, Severity
from pioconsole.exceptions import ConsoleError, ValidationError
from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)

PIN_TIMEOUT_MS = 5000

_DIGITS = re.compile(r"^\d+$")


class PinPurpose(StrEnum):
    OUTPUT = "output"
    INPUT = "input"
    ADC = "adc"
    I2C = "i2c"
    SPI = "spi"
    I2S = "i2s"
    PWM = "pwm"


class PinValidation(BaseModel):
    valid: bool
    severity: Literal["ok", "info", "warning", "error"] = "ok"
    message: str = ""


def parse_pin(pin: int | str) -> int:
    """Parse a GPIO number given as int or decimal string.

    Raises:
        ValidationError: If *pin* is negative or not a plain decimal number.
    """
    if isinstance(pin, bool):
        raise ValidationError(f"Invalid pin value: {pin}")
    if isinstance(pin, int):
        if pin < 0:
            raise ValidationError(f"Invalid pin value: {pin}")
        return pin
    trimmed = str(pin).strip()
    if not _DIGITS.fullmatch(trimmed):
        raise ValidationError(f"Invalid pin value: {pin}")
    return int(trimmed)


class PinValidator:
    """Validates pins for a purpose on a platform (and optional module)."""

    def __init__(
        self,
        gateway: CommandGateway,
        notifications: NotificationScheduler,
        timeout_ms: int = PIN_TIMEOUT_MS,
    ) -> None:
        self._gateway = gateway
        self._notifications = notifications
        self._timeout_ms = timeout_ms

    async def validate_pin(
        self,
        pin: int | str,
        purpose: PinPurpose | str,
        platform: str,
        module: str | None = None,
    ) -> PinValidation:
        purpose = PinPurpose(purpose)

        # ESP8266 exposes its only ADC input as "A0"
        is_a0 = isinstance(pin, str) and pin.strip().upper() == "A0"
        if is_a0 and normalize_platform(platform) == "esp8266":
            if purpose is PinPurpose.ADC:
                return PinValidation(valid=True, severity="ok", message="")
            return PinValidation(
                valid=False,
                severity="error",
                message="A0 on ESP8266 can only be used for ADC input",
            )

        try:
            number = parse_pin(pin)
        except ValidationError as exc:
            return PinValidation(valid=False, severity="error", message=str(exc))

        try:
            raw = await self._gateway.call(
                commands.VALIDATE_PIN,
                {"pin": number, "purpose": purpose.value, "platform": platform, "module": module},
                self._timeout_ms,
            )
            return PinValidation.model_validate(raw)
        except (ConsoleError, pydantic.ValidationError) as exc:
            logger.warning("pin_validation_failed", pin=number, platform=platform, error=str(exc))
            return PinValidation(valid=False, severity="error", message=f"Validation failed: {exc}")

    async def get_safe_pins(self, platform: str, module: str | None = None) -> list[int]:
        """Pins recommended for general use; empty (and notified) on failure."""
        try:
            pins = await self._gateway.call(
                commands.GET_SAFE_PINS,
                {"platform": platform, "module": module},
                self._timeout_ms,
            )
            return [int(p) for p in pins or []]
        except ConsoleError as exc:
            logger.error("safe_pins_failed", platform=platform, error=str(exc))
            self._notifications.push("Failed to load suggested pins", Severity.ERROR)
            return []
