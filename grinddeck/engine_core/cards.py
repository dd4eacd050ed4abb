"""
Cards - Immutable card values and the enumerations they are built from.

A card is one of seven kinds:
- number (1..9), zero, negative (-1..-9)
- arithmetic (+, -, ×, ÷)
- function (√, sin, x^y, ...)
- constant (π, e)
- variable (x)

Cards are compared by id only. Two "7" cards are different cards.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any
import uuid


class CardType(Enum):
    """Kinds of cards."""
    NUMBER = "number"
    ZERO = "zero"
    NEGATIVE = "negative"
    ARITHMETIC = "arithmetic"
    FUNCTION = "function"
    CONSTANT = "constant"
    VARIABLE = "variable"


NUMBER_LIKE_TYPES = frozenset({
    CardType.NUMBER,
    CardType.ZERO,
    CardType.NEGATIVE,
    CardType.CONSTANT,
})


_TIER_ORDER = ("basic", "decimals", "negative", "functions", "algebra")


class Difficulty(Enum):
    """Difficulty tiers, ordered from easiest to hardest."""
    BASIC = "basic"
    DECIMALS = "decimals"
    NEGATIVE = "negative"
    FUNCTIONS = "functions"
    ALGEBRA = "algebra"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self.value)

    def at_least(self, other: Difficulty) -> bool:
        """True if this tier is `other` or harder."""
        return self.rank >= other.rank


class ArithmeticOperator(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "×"
    DIVIDE = "÷"


class FunctionOperator(Enum):
    """Function card operators."""
    SQRT = "√"
    CBRT = "∛"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    RECIPROCAL = "1/x"
    POWER = "x^y"
    MOD = "mod"  # absolute value, not modulo
    PYTH = "pyth"
    FACTORIAL = "!"
    SQUARE = "x^2"
    CUBE = "x^3"
    MODULUS = "modulus"
    PERCENT = "%"
    LN = "ln"
    EXP = "exp"

    @property
    def is_binary(self) -> bool:
        """Binary operators take a second number-like card."""
        return self in BINARY_FUNCTIONS


BINARY_FUNCTIONS = frozenset({
    FunctionOperator.POWER,
    FunctionOperator.PYTH,
    FunctionOperator.MODULUS,
})

# Operators that appear in decks and in synthesized cards. MODULUS exists as a
# card type but is never dealt.
DEALT_FUNCTIONS = (
    FunctionOperator.SQRT,
    FunctionOperator.CBRT,
    FunctionOperator.SIN,
    FunctionOperator.COS,
    FunctionOperator.TAN,
    FunctionOperator.RECIPROCAL,
    FunctionOperator.POWER,
    FunctionOperator.MOD,
    FunctionOperator.PYTH,
    FunctionOperator.FACTORIAL,
    FunctionOperator.SQUARE,
    FunctionOperator.CUBE,
    FunctionOperator.LN,
    FunctionOperator.PERCENT,
    FunctionOperator.EXP,
)


class ConstantSymbol(Enum):
    PI = "π"
    E = "e"


VARIABLE_SYMBOL = "x"


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, eq=False)
class Card:
    """
    A single card.

    Only the payload field that matches `card_type` is set:
    - value: number, zero and negative cards
    - operator: arithmetic and function cards
    - constant: constant cards
    - symbol: variable cards
    """
    card_id: str
    card_type: CardType
    value: int | None = None
    operator: ArithmeticOperator | FunctionOperator | None = None
    constant: ConstantSymbol | None = None
    symbol: str | None = None

    def __hash__(self):
        return hash(self.card_id)

    def __eq__(self, other):
        if not isinstance(other, Card):
            return False
        return self.card_id == other.card_id

    @property
    def is_number_like(self) -> bool:
        return self.card_type in NUMBER_LIKE_TYPES

    @property
    def is_binary_function(self) -> bool:
        return (
            self.card_type == CardType.FUNCTION
            and isinstance(self.operator, FunctionOperator)
            and self.operator.is_binary
        )

    @property
    def label(self) -> str:
        """Text printed on the face of the card."""
        if self.card_type in (CardType.NUMBER, CardType.ZERO, CardType.NEGATIVE):
            return str(self.value)
        if self.operator is not None:
            return self.operator.value
        if self.constant is not None:
            return self.constant.value
        return self.symbol or VARIABLE_SYMBOL

    # Factories

    @classmethod
    def number(cls, value: int, card_id: str | None = None) -> Card:
        if value == 0:
            return cls.zero(card_id)
        if value < 0:
            return cls.negative(value, card_id)
        return cls(card_id=card_id or _new_id(), card_type=CardType.NUMBER, value=value)

    @classmethod
    def zero(cls, card_id: str | None = None) -> Card:
        return cls(card_id=card_id or _new_id(), card_type=CardType.ZERO, value=0)

    @classmethod
    def negative(cls, value: int, card_id: str | None = None) -> Card:
        if value >= 0:
            raise ValueError(f"Negative card needs a value below zero, got {value}")
        return cls(card_id=card_id or _new_id(), card_type=CardType.NEGATIVE, value=value)

    @classmethod
    def arithmetic(cls, operator: ArithmeticOperator | str, card_id: str | None = None) -> Card:
        return cls(
            card_id=card_id or _new_id(),
            card_type=CardType.ARITHMETIC,
            operator=ArithmeticOperator(operator),
        )

    @classmethod
    def function(cls, operator: FunctionOperator | str, card_id: str | None = None) -> Card:
        return cls(
            card_id=card_id or _new_id(),
            card_type=CardType.FUNCTION,
            operator=FunctionOperator(operator),
        )

    @classmethod
    def constant_card(cls, symbol: ConstantSymbol | str, card_id: str | None = None) -> Card:
        return cls(
            card_id=card_id or _new_id(),
            card_type=CardType.CONSTANT,
            constant=ConstantSymbol(symbol),
        )

    @classmethod
    def variable(cls, card_id: str | None = None) -> Card:
        return cls(card_id=card_id or _new_id(), card_type=CardType.VARIABLE, symbol=VARIABLE_SYMBOL)

    # Serialization (move logs, history)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.card_id, "type": self.card_type.value}
        if self.value is not None:
            data["value"] = self.value
        if self.operator is not None:
            data["operator"] = self.operator.value
        if self.constant is not None:
            data["value"] = self.constant.value
        if self.symbol is not None:
            data["symbol"] = self.symbol
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Card:
        card_type = CardType(data["type"])
        card_id = data["id"]
        if card_type == CardType.ARITHMETIC:
            return cls.arithmetic(data["operator"], card_id)
        if card_type == CardType.FUNCTION:
            return cls.function(data["operator"], card_id)
        if card_type == CardType.CONSTANT:
            return cls.constant_card(data["value"], card_id)
        if card_type == CardType.VARIABLE:
            return cls.variable(card_id)
        return cls(card_id=card_id, card_type=card_type, value=int(data["value"]))
