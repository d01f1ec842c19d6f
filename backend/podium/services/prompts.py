"""Static prompt lists handed to the client when a session starts."""

from typing import List, Optional

from podium.constants import RAPID_FIRE, CONDUCTOR, TRIPLE_STEP, DIFFICULTIES
from podium.errors import ValidationError

DEFAULT_COUNTS = {
    RAPID_FIRE: 10,
    CONDUCTOR: 5,
    TRIPLE_STEP: 6,
}

_CATALOG = {
    RAPID_FIRE: {
        'beginner': [
            'Success is like', 'Friendship is like', 'Learning is like', 'Teamwork is like',
            'Creativity is like', 'Patience is like', 'Growth is like', 'Communication is like',
            'Trust is like', 'Change is like',
        ],
        'intermediate': [
            'Leadership is like', 'Innovation is like', 'Problem-solving is like', 'Adaptability is like',
            'Collaboration is like', 'Resilience is like', 'Vision is like', 'Excellence is like',
            'Balance is like', 'Progress is like',
        ],
        'advanced': [
            'Time is like', 'Truth is like', 'Wisdom is like', 'Freedom is like', 'Justice is like',
            'Beauty is like', 'Love is like', 'Memory is like', 'Courage is like', 'Infinity is like',
        ],
        'expert': [
            'Existence is like', 'Consciousness is like', 'Reality is like', 'Perception is like',
            'Meaning is like', 'Chaos is like', 'Order is like', 'Duality is like', 'Unity is like',
            'Transcendence is like',
        ],
    },
    CONDUCTOR: {
        'beginner': [
            'My favorite hobby and why I love it',
            'A memorable vacation experience',
            "The best meal I've ever had",
            'My favorite movie and what makes it special',
            'A person who has influenced my life',
        ],
        'intermediate': [
            'The importance of teamwork in modern business',
            'How I overcame a significant challenge',
            'The benefits of continuous learning',
            'The impact of technology on daily life',
            'Why effective communication matters',
        ],
        'advanced': [
            'The future of remote work and collaboration',
            'Balancing personal and professional priorities',
            'The role of creativity in problem-solving',
            'Building resilience in uncertain times',
            'The psychology of motivation and achievement',
        ],
        'expert': [
            'The nature of human consciousness and awareness',
            'The balance between tradition and progress',
            'The meaning of success in modern society',
            'The relationship between technology and humanity',
            'The pursuit of happiness and fulfillment',
        ],
    },
    TRIPLE_STEP: {
        'beginner': ['book', 'happy', 'run', 'blue', 'tree', 'smile',
                     'water', 'friend', 'home', 'food', 'music', 'sun'],
        'intermediate': ['adventure', 'wisdom', 'transform', 'serendipity', 'resilience', 'synthesize',
                         'harmony', 'innovation', 'perspective', 'authenticity', 'momentum', 'clarity'],
        'advanced': ['quintessential', 'ephemeral', 'metamorphosis', 'paradox', 'catalyst', 'labyrinth',
                     'equilibrium', 'juxtapose', 'nuance', 'vestige', 'zenith', 'cadence'],
        'expert': ['ubiquitous', 'sesquipedalian', 'palimpsest', 'apotheosis', 'liminal', 'verisimilitude',
                   'ineffable', 'perspicacious', 'anachronism', 'obfuscate', 'sonder', 'ethereal'],
    },
}


class PromptCatalog:

    def prompts_for(self, game_type: str, difficulty: Optional[str] = None, count: Optional[int] = None) -> List[str]:
        lists = _CATALOG.get(game_type)
        if lists is None:
            raise ValidationError(f"Invalid game type: {game_type!r}")
        if difficulty not in DIFFICULTIES:
            difficulty = 'beginner'
        if count is None:
            count = DEFAULT_COUNTS[game_type]
        return list(lists[difficulty][:max(0, int(count))])
