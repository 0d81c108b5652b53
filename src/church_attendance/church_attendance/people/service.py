from __future__ import annotations

import io
import logging
import random
from datetime import date
from typing import Optional

import qrcode

from ..core.constants import DEFAULT_MEMBERSHIP_PREFIX, MAX_MEMBERSHIP_ID_ATTEMPTS
from ..core.exceptions import ValidationError
from ..membership import codec
from .model import PersonSnapshot
from .repository import PersonRepository

logger = logging.getLogger(__name__)


class MemberService:
    def __init__(
        self,
        people: PersonRepository,
        *,
        prefix: str = DEFAULT_MEMBERSHIP_PREFIX,
        strict_prefix: bool = False,
        rng: Optional[random.Random] = None,
    ):
        self._people = people
        self._prefix = prefix.upper()
        self._strict_prefix = bool(strict_prefix)
        self._rng = rng or random.Random()

    def resolve_identifier(self, raw: str) -> PersonSnapshot:
        """Find the member behind a scanned or typed membership identifier."""
        parsed = codec.parse(raw, prefix=self._prefix if self._strict_prefix else None)
        if parsed is None:
            raise ValidationError(f"Invalid membership ID: {raw!r}")

        member = self._people.get_by_membership_id(parsed.full)
        if not member:
            raise ValidationError(f"No member with membership ID {parsed.display}")
        return member

    def get_person(self, person_id: int) -> PersonSnapshot:
        person = self._people.get_by_id(int(person_id))
        if not person:
            raise ValidationError(f"Person #{person_id} does not exist")
        return person

    def assign_membership_id(self, person_id: int, *, year: Optional[int] = None, today: Optional[date] = None) -> str:
        """Generate and store a unique identifier; returns the display form.

        The first attempt derives digits from the member's phone. Later attempts
        (after a collision on the unique column) use the random fallback.
        A member who already holds an identifier keeps it: it is printed on
        their badge.
        """
        person = self.get_person(person_id)
        if not person.is_member:
            raise ValidationError("Only members carry a membership ID")
        if person.membership_id:
            return codec.format_for_display(person.membership_id)

        contact = person.phone
        for attempt in range(1, MAX_MEMBERSHIP_ID_ATTEMPTS + 1):
            display = codec.generate(contact, year, prefix=self._prefix, rng=self._rng, today=today)
            if self._people.set_membership_id(person.person_id, codec.normalize(display)):
                logger.info("Assigned membership ID %s to person #%s (attempt %s)", display, person.person_id, attempt)
                return display
            logger.debug("Membership ID %s already taken, regenerating", display)
            contact = None

        raise ValidationError(f"Could not find a free membership ID after {MAX_MEMBERSHIP_ID_ATTEMPTS} attempts")

    def badge_png(self, person_id: int) -> bytes:
        """QR code PNG carrying the member's display-form identifier."""
        person = self.get_person(person_id)
        if not person.membership_id:
            raise ValidationError(f"Person #{person.person_id} has no membership ID")

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=2,
        )
        qr.add_data(codec.format_for_display(person.membership_id))
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
