"""
Agent Battalion - Contract-enforced multi-agent app generation.

Turns a natural-language app description into a versioned set of
artifacts (PRD, architecture, API contract, specs, test plan), generated
code, a verification result and a run manifest, with every agent write
checked against a static contract registry.
"""

__version__ = "0.1.0"

__all__ = []
