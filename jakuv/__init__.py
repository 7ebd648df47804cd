"""
Jakuv - Rules engine for a two-player race-to-21 card game.

Provides:
- Authoritative state management with atomic transitions
- Legal intent generation
- A counter-stack protocol for proposed actions
- Per-rank card effects with forced sub-choices
- Decision adapters for the AI seat (heuristic, random, LLM-backed)
"""

__version__ = "0.1.0"
