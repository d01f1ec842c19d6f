from dataclasses import dataclass, asdict
from typing import Optional

from podium.constants import RAPID_FIRE, CONDUCTOR, TRIPLE_STEP
from podium.utils import clamp_percent, ratio_percent, round_half_up, to_number
from .variants import GameSpecificData, RapidFireData, ConductorData, TripleStepData


@dataclass(frozen=True)
class NormalizedPerformance:
    score: int = 0
    accuracy: int = 0
    speed: int = 0
    energy_consistency: int = 0
    word_integration: int = 0
    total_prompts: int = 0
    completed_prompts: int = 0

    def to_dict(self):
        return asdict(self)


def _count(value) -> int:
    # Prompt counters are not percentages but are never negative
    return max(0, round_half_up(to_number(value)))


def _from_reported(raw_performance: Optional[dict]) -> dict:
    raw = raw_performance if isinstance(raw_performance, dict) else {}
    return {
        'score': clamp_percent(raw.get('score')),
        'accuracy': clamp_percent(raw.get('accuracy')),
        'speed': clamp_percent(raw.get('speed')),
        'energy_consistency': clamp_percent(raw.get('energy_consistency')),
        'word_integration': clamp_percent(raw.get('word_integration')),
        'total_prompts': _count(raw.get('total_prompts')),
        'completed_prompts': _count(raw.get('completed_prompts')),
    }


def compute(game_type: str, raw_performance: Optional[dict], game_data: Optional[GameSpecificData]) -> NormalizedPerformance:
    """Turn raw telemetry into 0-100 performance fields.

    The game-specific sub-record drives the formulas. When it is missing the
    client-reported performance is used as-is (after clamping).
    """
    fields = _from_reported(raw_performance)

    if game_type == RAPID_FIRE and isinstance(game_data, RapidFireData):
        accuracy = ratio_percent(game_data.completed_responses, game_data.total_prompts)
        fields.update(
            accuracy=accuracy,
            score=accuracy,
            speed=clamp_percent(game_data.response_time),
            total_prompts=_count(game_data.total_prompts),
            completed_prompts=_count(game_data.completed_responses),
        )
    elif game_type == CONDUCTOR and isinstance(game_data, ConductorData):
        accuracy = clamp_percent(game_data.consistency)
        fields.update(accuracy=accuracy, score=accuracy, energy_consistency=accuracy)
    elif game_type == TRIPLE_STEP and isinstance(game_data, TripleStepData):
        accuracy = ratio_percent(game_data.successful_integrations, game_data.words_attempted)
        fields.update(
            accuracy=accuracy,
            score=accuracy,
            word_integration=accuracy,
            speed=clamp_percent(game_data.average_time),
        )

    return NormalizedPerformance(**fields)
