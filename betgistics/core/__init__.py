"""Core mathematics and configuration for the Betgistics edge engine.

This package contains pure, sport-agnostic building blocks:

- ``sport_config``  — Sport/Venue variants and per-league constants
- ``margin_models`` — team stats → predicted margin or total
- ``probability``   — normal-approximation cover/over probabilities
- ``odds_math``     — American/decimal/fractional conversion, two-way vig
- ``kelly``         — fractional Kelly sizing and recommendation text

Nothing in this package imports from ``betgistics.services`` or
``betgistics.models``.  All modules are side-effect-free and unit-testable
in isolation.
"""
