"""Property tests for endpoint input validators.

- Well-formed inputs are accepted and normalized regardless of separators
- Inputs of the wrong length are always rejected
"""

from __future__ import annotations

from collections.abc import Callable

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from jibit_sdk import endpoints
from jibit_sdk.errors import ValidationError


def digit_strings(length: int) -> st.SearchStrategy[str]:
    return st.text(alphabet="0123456789", min_size=length, max_size=length)


@st.composite
def with_separators(draw: st.DrawFn, digits: str) -> str:
    out: list[str] = []
    for ch in digits:
        out.append(ch)
        out.append(draw(st.sampled_from(["", "", " ", "-"])))
    return "".join(out)


VALIDATORS = [
    (endpoints.normalize_card_number, 16),
    (endpoints.normalize_national_code, 10),
    (endpoints.normalize_postal_code, 10),
    (endpoints.normalize_birth_date, 8),
]


class TestDigitValidators:
    """Property tests for fixed-length digit validators."""

    @pytest.mark.parametrize(("validator", "length"), VALIDATORS)
    @given(data=st.data())
    @settings(max_examples=50)
    def test_separators_are_stripped(
        self, validator: Callable[[str], str], length: int, data: st.DataObject
    ) -> None:
        """Property: spaces and dashes never change the normalized value."""
        digits = data.draw(digit_strings(length))
        formatted = data.draw(with_separators(digits))

        assert validator(formatted) == digits

    @pytest.mark.parametrize(("validator", "length"), VALIDATORS)
    @given(data=st.data())
    @settings(max_examples=50)
    def test_wrong_length_rejected(
        self, validator: Callable[[str], str], length: int, data: st.DataObject
    ) -> None:
        """Property: any other number of digits fails validation."""
        size = data.draw(st.integers(min_value=0, max_value=30).filter(lambda n: n != length))
        value = data.draw(digit_strings(size))

        with pytest.raises(ValidationError):
            validator(value)


class TestIbanValidator:
    """Property tests for IBAN normalization."""

    @given(digits=digit_strings(24), prefix=st.sampled_from(["IR", "ir", "Ir", "iR"]))
    @settings(max_examples=100)
    def test_iran_ibans_normalized(self, digits: str, prefix: str) -> None:
        """Property: IR plus 24 digits is accepted and upper-cased."""
        assert endpoints.normalize_iban(prefix + digits) == "IR" + digits

    @given(
        digits=digit_strings(24),
        prefix=st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ", min_size=2, max_size=2).filter(
            lambda p: p != "IR"
        ),
    )
    @settings(max_examples=100)
    def test_other_countries_rejected(self, digits: str, prefix: str) -> None:
        """Property: any other country prefix fails validation."""
        with pytest.raises(ValidationError):
            endpoints.normalize_iban(prefix + digits)
