"""Three ordered decoders for free-form provider text.

1. StructuredDecoder pulls the outermost ``{...}`` block and parses it as JSON.
2. HeuristicDecoder scrapes ``<label> ... <digits>`` scalars with regexes.
3. DefaultDecoder returns a fixed result and never fails.

DecoderChain tries them in order and reports which tier produced the values.
"""

import json
import re
from dataclasses import dataclass
from typing import Dict, Sequence

_JSON_BLOCK = re.compile(r'\{[\s\S]*\}')


class DecodeError(ValueError):
    pass


class StructuredDecoder:
    name = 'structured'

    def decode(self, text: str) -> dict:
        if not isinstance(text, str):
            raise DecodeError('provider text is not a string')
        match = _JSON_BLOCK.search(text)
        if not match:
            raise DecodeError('no JSON object in provider text')
        try:
            payload = json.loads(match.group(0))
        except ValueError as exc:
            raise DecodeError(f"malformed JSON object: {exc}") from exc
        if not isinstance(payload, dict):
            raise DecodeError('JSON payload is not an object')
        return payload


class HeuristicDecoder:
    """Scrape integer scalars keyed by case-insensitive labels.

    ``fields`` maps output keys to the label searched for, e.g.
    ``{'coherenceScore': 'coherence'}`` reads the first number that follows
    the word "coherence" on the same line.
    """
    name = 'heuristic'

    def __init__(self, fields: Dict[str, str]):
        self.patterns = {
            key: re.compile(rf'{re.escape(label)}.*?(\d+)', re.IGNORECASE)
            for key, label in fields.items()
        }

    def decode(self, text: str) -> dict:
        if not isinstance(text, str):
            raise DecodeError('provider text is not a string')
        values = {}
        for key, pattern in self.patterns.items():
            match = pattern.search(text)
            if match:
                values[key] = int(match.group(1))
        if not values:
            raise DecodeError('no recognisable scores in provider text')
        return values


class DefaultDecoder:
    name = 'default'

    def __init__(self, default: dict):
        self.default = default

    def decode(self, text: str) -> dict:
        return dict(self.default)


@dataclass(frozen=True)
class Decoded:
    tier: str
    values: dict


class DecoderChain:

    def __init__(self, decoders: Sequence):
        if not decoders or not isinstance(decoders[-1], DefaultDecoder):
            raise ValueError('decoder chain must end with a DefaultDecoder')
        self.decoders = list(decoders)
        self.default = decoders[-1].default

    @classmethod
    def standard(cls, default: dict, heuristic_fields: Dict[str, str]) -> 'DecoderChain':
        return cls([StructuredDecoder(), HeuristicDecoder(heuristic_fields), DefaultDecoder(default)])

    def decode(self, text: str) -> Decoded:
        for decoder in self.decoders:
            try:
                values = decoder.decode(text)
            except DecodeError:
                continue
            merged = dict(self.default)
            merged.update(values)
            return Decoded(decoder.name, merged)
        # Unreachable: DefaultDecoder never raises
        return Decoded(DefaultDecoder.name, dict(self.default))
