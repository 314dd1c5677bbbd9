#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/errors.py
# Purpose: Error types shared by stores, services and the API layer.
#
# Description of code and how it works:
# - ValidationResult is a plain return value (never raised).
# - NotFoundError -> 404, StorageFailure -> 500 (see main.py handlers).
#
# Author: TrafficNews Team
# Created: 2026-10-07
#
# Version: 0.1.1
# Last Modified: 2026-10-12 by TrafficNews Team
#
# Revision History:
# - 0.1.1 (2026-10-12): ValidationResult.merge for service-level rules.
# - 0.1.0 (2026-10-07): Initial error taxonomy.
###################################################################
#
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def of(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=list(errors))

    def merge(self, extra: List[str]) -> "ValidationResult":
        return ValidationResult.of(self.errors + list(extra))


class NotFoundError(LookupError):
    def __init__(self, kind: str, ident: str):
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident


class StorageFailure(RuntimeError):
    """A persistence call failed and nothing was committed."""
