RAPID_FIRE = 'rapidFire'
CONDUCTOR = 'conductor'
TRIPLE_STEP = 'tripleStep'

GAME_TYPES = (RAPID_FIRE, CONDUCTOR, TRIPLE_STEP)
DIFFICULTIES = ('beginner', 'intermediate', 'advanced', 'expert')

# Rolling windows in days; 'all' means unbounded
TIME_RANGE_DAYS = {
    'week': 7,
    'month': 30,
    'quarter': 90,
    'year': 365,
}
TIME_RANGES = tuple(TIME_RANGE_DAYS) + ('all',)

ACHIEVEMENTS = {
    'first_game': 'Played your first game!',
    'streak_5': 'Maintained a 5-day streak!',
    'streak_10': 'Maintained a 10-day streak!',
    'perfect_score': 'Scored a perfect 100 in a session!',
    'speed_demon': 'Answered rapid-fire prompts in two seconds or less!',
    'energy_master': 'Held energy consistency at 90 or above!',
    'integration_expert': 'Integrated 90% or more of your words!',
}
