"""Game-specific telemetry, one dataclass per game type.

Clients send ``game_specific_data`` as ``{"<gameType>": {...}}``. Only the
sub-record matching the session's game type is parsed; anything else in the
payload is dropped.
"""

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Union

from podium.constants import RAPID_FIRE, CONDUCTOR, TRIPLE_STEP
from podium.utils import to_number


def _text(value) -> str:
    return value if isinstance(value, str) else ''


def _items(value) -> list:
    return [item for item in value if isinstance(item, dict)] if isinstance(value, list) else []


@dataclass
class RapidFirePrompt:
    text: str = ''
    user_response: str = ''
    response_time: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> 'RapidFirePrompt':
        return cls(
            text=_text(data.get('text')),
            user_response=_text(data.get('user_response')),
            response_time=to_number(data.get('response_time')),
        )


@dataclass
class RapidFireData:
    total_prompts: float = 0.0
    completed_responses: float = 0.0
    # Average seconds per answer
    response_time: float = 0.0
    prompts: List[RapidFirePrompt] = field(default_factory=list)

    game_type = RAPID_FIRE

    @classmethod
    def from_dict(cls, data: dict) -> 'RapidFireData':
        return cls(
            total_prompts=to_number(data.get('total_prompts')),
            completed_responses=to_number(data.get('completed_responses')),
            response_time=to_number(data.get('response_time')),
            prompts=[RapidFirePrompt.from_dict(p) for p in _items(data.get('prompts'))],
        )


@dataclass
class EnergyTransition:
    from_level: float = 0.0
    to_level: float = 0.0
    transition_time: float = 0.0
    speech_segment: str = ''

    @classmethod
    def from_dict(cls, data: dict) -> 'EnergyTransition':
        return cls(
            from_level=to_number(data.get('from_level')),
            to_level=to_number(data.get('to_level')),
            transition_time=to_number(data.get('transition_time')),
            speech_segment=_text(data.get('speech_segment')),
        )


@dataclass
class BreatheCue:
    response_time: float = 0.0
    speech_before: str = ''
    speech_after: str = ''

    @classmethod
    def from_dict(cls, data: dict) -> 'BreatheCue':
        return cls(
            response_time=to_number(data.get('response_time')),
            speech_before=_text(data.get('speech_before')),
            speech_after=_text(data.get('speech_after')),
        )


@dataclass
class ConductorData:
    topic: str = ''
    # Client-measured, already 0-100
    consistency: float = 0.0
    energy_level: float = 0.0
    energy_transitions: List[EnergyTransition] = field(default_factory=list)
    breathe_cues: List[BreatheCue] = field(default_factory=list)

    game_type = CONDUCTOR

    @classmethod
    def from_dict(cls, data: dict) -> 'ConductorData':
        return cls(
            topic=_text(data.get('topic')),
            consistency=to_number(data.get('consistency')),
            energy_level=to_number(data.get('energy_level')),
            energy_transitions=[EnergyTransition.from_dict(t) for t in _items(data.get('energy_transitions'))],
            breathe_cues=[BreatheCue.from_dict(c) for c in _items(data.get('breathe_cues'))],
        )


@dataclass
class WordAttempt:
    word: str = ''
    context: str = ''
    integration_time: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> 'WordAttempt':
        return cls(
            word=_text(data.get('word')),
            context=_text(data.get('context')),
            integration_time=to_number(data.get('integration_time')),
        )


@dataclass
class TripleStepData:
    topic: str = ''
    words_attempted: float = 0.0
    successful_integrations: float = 0.0
    average_time: float = 0.0
    speech_transcript: str = ''
    words: List[WordAttempt] = field(default_factory=list)

    game_type = TRIPLE_STEP

    @classmethod
    def from_dict(cls, data: dict) -> 'TripleStepData':
        return cls(
            topic=_text(data.get('topic')),
            words_attempted=to_number(data.get('words_attempted')),
            successful_integrations=to_number(data.get('successful_integrations')),
            average_time=to_number(data.get('average_time')),
            speech_transcript=_text(data.get('speech_transcript')),
            words=[WordAttempt.from_dict(w) for w in _items(data.get('words'))],
        )


GameSpecificData = Union[RapidFireData, ConductorData, TripleStepData]

_VARIANTS = {
    RAPID_FIRE: RapidFireData,
    CONDUCTOR: ConductorData,
    TRIPLE_STEP: TripleStepData,
}


def parse_game_specific(game_type: str, raw) -> Optional[GameSpecificData]:
    """Return the variant for ``game_type``, or None when its sub-record is absent."""
    variant = _VARIANTS.get(game_type)
    if variant is None or not isinstance(raw, dict):
        return None
    record = raw.get(game_type)
    if not isinstance(record, dict):
        return None
    return variant.from_dict(record)


def dump_game_specific(data: Optional[GameSpecificData]) -> dict:
    if data is None:
        return {}
    return {data.game_type: asdict(data)}
