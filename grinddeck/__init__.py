"""
Grind Deck - Arithmetic Card Game Engine

A deterministic, single-player card game engine. The player grows a running
value by playing arithmetic, function, constant and variable cards drawn
from a difficulty-gated deck. The engine provides:
- Deck generation and hand management
- Move validation and numeric evaluation
- Score-driven unlocks
- Solo mode end conditions
- A REST API and a terminal client
"""

__version__ = "0.1.0"
