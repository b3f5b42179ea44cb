#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Progress status of match records.

Once a matcher has worked on a record, its first line carries the progress as
"c:<n>/<d> m:<n>/<d> f:<n>/<d> ma:<n>/<d>" (classes, methods, fields, method
arguments). Freshly created records carry no status.
"""

import re
import logging
from typing import Dict, Optional, Sequence, Tuple
from dataclasses import dataclass

from matchlib.constants import STATUS_WEIGHTS
from matchlib.match_registry import MatchRecordRef

logger = logging.getLogger(__name__)

RE_STATUS = re.compile(r"c:(\d+)/(\d+) m:(\d+)/(\d+) f:(\d+)/(\d+) ma:(\d+)/(\d+)")


def _ratio(value: Tuple[int, int]) -> float:
    matched, total = value
    if total <= 0:
        return 1.0
    return matched / total


def weighted_geo_mean(values: Sequence[float], weights: Sequence[float]) -> float:
    """Weighted geometric mean of values in the range 0.0 - 1.0."""
    if len(values) != len(weights):
        raise ValueError("values and weights must have the same length")
    weight_sum = sum(weights)
    if weight_sum <= 0:
        raise ValueError("weights must sum to a positive value")
    product = 1.0
    for value, weight in zip(values, weights):
        product *= value**weight
    return product ** (1 / weight_sum)


@dataclass(frozen=True)
class MatchStatus:
    """Matched/total counts of one record."""

    classes: Tuple[int, int]
    methods: Tuple[int, int]
    fields: Tuple[int, int]
    method_args: Tuple[int, int]

    def ratios(self) -> Tuple[float, float, float, float]:
        return (_ratio(self.classes), _ratio(self.methods), _ratio(self.fields), _ratio(self.method_args))

    @property
    def overall(self) -> float:
        return weighted_geo_mean(self.ratios(), STATUS_WEIGHTS)

    def as_percent(self) -> float:
        """Overall progress rounded to two decimals, e.g. 97.53."""
        return round(self.overall * 1e4) / 1e2


def parse_match_status(line: str) -> Optional[MatchStatus]:
    m = RE_STATUS.search(line)
    if not m:
        return None
    n = [int(g) for g in m.groups()]
    return MatchStatus(classes=(n[0], n[1]), methods=(n[2], n[3]), fields=(n[4], n[5]), method_args=(n[6], n[7]))


def read_match_status(path: str) -> Optional[MatchStatus]:
    """Parse the status of the record at path from its first line."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            first_line = f.readline()
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
        return None
    return parse_match_status(first_line)


def collect_statuses(refs: Sequence[MatchRecordRef]) -> Dict[str, Optional[MatchStatus]]:
    """Status of every record, keyed by record path."""
    return {ref.path: read_match_status(ref.path) for ref in refs}
