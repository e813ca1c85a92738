"""Deterministic, headless match engine for Moment Rivals.

IMPORTANT: This package must never import pygame.
"""

from .actions import (
    Action,
    CycleCardAction,
    DeselectCardAction,
    ForfeitAction,
    ManualDrawAction,
    PassAction,
    PlayCardAction,
    ProceedAction,
    SelectCardAction,
    TimeoutAction,
)
from .ai import AIPolicy, AISpec
from .driver import MatchDriver
from .match import MatchConfig, MatchState, PlayChoice, StepResult, config_from_mapping, new_match, step
from .rules import CLASSIC, POWER_MOMENTUM, RuleSet, rules_for
from .types import Card, CardPlay, CardType, PassPlay, Play, ValidationResult

__all__ = [
    "AIPolicy",
    "AISpec",
    "Action",
    "CLASSIC",
    "Card",
    "CardPlay",
    "CardType",
    "CycleCardAction",
    "DeselectCardAction",
    "ForfeitAction",
    "ManualDrawAction",
    "MatchConfig",
    "MatchDriver",
    "MatchState",
    "POWER_MOMENTUM",
    "PassAction",
    "PassPlay",
    "Play",
    "PlayCardAction",
    "PlayChoice",
    "ProceedAction",
    "RuleSet",
    "SelectCardAction",
    "StepResult",
    "TimeoutAction",
    "ValidationResult",
    "config_from_mapping",
    "new_match",
    "rules_for",
    "step",
]
