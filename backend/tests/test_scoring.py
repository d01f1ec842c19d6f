import math

from podium.services.games import scoring
from podium.services.games.variants import parse_game_specific, RapidFireData, TripleStepData
from podium.utils import round_half_up, clamp_percent


def test_round_half_up_matches_js_math_round():
    assert round_half_up(82.5) == 83
    assert round_half_up(36.36) == 36
    assert round_half_up(-2.5) == -2
    assert round_half_up(0.49) == 0


def test_clamp_percent_rejects_non_numbers():
    assert clamp_percent(float('nan')) == 0
    assert clamp_percent(math.inf) == 0
    assert clamp_percent('abc') == 0
    assert clamp_percent(None) == 0
    assert clamp_percent(140) == 100
    assert clamp_percent(-3) == 0


def test_rapid_fire_accuracy_from_completed_responses():
    data = parse_game_specific('rapidFire', {
        'rapidFire': {'total_prompts': 10, 'completed_responses': 7, 'response_time': 2.4},
    })
    assert isinstance(data, RapidFireData)
    perf = scoring.compute('rapidFire', {}, data)
    assert perf.accuracy == 70
    assert perf.score == 70
    assert perf.speed == 2
    assert perf.total_prompts == 10
    assert perf.completed_prompts == 7


def test_rapid_fire_zero_prompts_never_divides():
    data = parse_game_specific('rapidFire', {'rapidFire': {'total_prompts': 0, 'completed_responses': 0}})
    perf = scoring.compute('rapidFire', None, data)
    assert perf.accuracy == 0
    assert perf.score == 0


def test_conductor_uses_consistency():
    data = parse_game_specific('conductor', {'conductor': {'consistency': 82.5}})
    perf = scoring.compute('conductor', None, data)
    assert perf.accuracy == 83
    assert perf.energy_consistency == 83
    assert perf.score == 83


def test_triple_step_integration_ratio():
    data = parse_game_specific('tripleStep', {
        'tripleStep': {'words_attempted': 6, 'successful_integrations': 5, 'average_time': 4},
    })
    assert isinstance(data, TripleStepData)
    perf = scoring.compute('tripleStep', None, data)
    assert perf.accuracy == 83
    assert perf.word_integration == 83
    assert perf.score == 83
    assert perf.speed == 4


def test_triple_step_zero_attempts():
    data = parse_game_specific('tripleStep', {'tripleStep': {'words_attempted': 0, 'successful_integrations': 3}})
    assert scoring.compute('tripleStep', None, data).accuracy == 0


def test_missing_sub_record_falls_back_to_reported_performance():
    # Sub-record for another game type is ignored
    data = parse_game_specific('conductor', {'rapidFire': {'total_prompts': 10}})
    assert data is None
    perf = scoring.compute('conductor', {'score': 120, 'accuracy': 'oops', 'energy_consistency': 64.5}, data)
    assert perf.score == 100
    assert perf.accuracy == 0
    assert perf.energy_consistency == 65


def test_all_percentages_stay_in_range_for_hostile_input():
    data = parse_game_specific('rapidFire', {
        'rapidFire': {'total_prompts': 3, 'completed_responses': 9, 'response_time': -5},
    })
    perf = scoring.compute('rapidFire', {'score': float('inf')}, data)
    for value in (perf.score, perf.accuracy, perf.speed, perf.energy_consistency, perf.word_integration):
        assert 0 <= value <= 100
