import random
import secrets

# Curated word lists for generating friendly match names
ADJECTIVES = [
    'swift', 'brave', 'mighty', 'golden', 'silver', 'crimson', 'azure', 'emerald',
    'fierce', 'noble', 'royal', 'epic', 'legendary', 'stealthy', 'tactical', 'radiant',
    'thunder', 'lightning', 'storm', 'frost', 'flame', 'shadow', 'silent', 'ancient',
    'iron', 'steel', 'diamond', 'crystal', 'blazing', 'airborne', 'rising', 'final',
    'wild', 'savage', 'primal', 'cunning', 'clever', 'bold', 'daring', 'fearless'
]

NOUNS = [
    'dragon', 'phoenix', 'titan', 'warrior', 'champion', 'gladiator', 'sniper', 'ranger',
    'sentinel', 'guardian', 'defender', 'hunter', 'scout', 'vanguard', 'legion', 'squad',
    'falcon', 'eagle', 'hawk', 'raven', 'wolf', 'lion', 'tiger', 'panther', 'cobra',
    'viper', 'scorpion', 'shark', 'kraken', 'colossus', 'tempest', 'cyclone', 'blizzard'
]

# BGMI battlegrounds
MAPS = ['erangel', 'miramar', 'sanhok', 'vikendi', 'livik', 'karakin', 'nusa']


def generate_match_name(round_name: str, match_num: int = None) -> str:
    """Generate a friendly match name like 'qualifier-erangel-crimson-phoenix'"""
    battleground = random.choice(MAPS)
    adj = random.choice(ADJECTIVES)
    noun = random.choice(NOUNS)
    name = f"{round_name.lower()}-{battleground}-{adj}-{noun}"
    return f"{name}-{match_num}" if match_num is not None else name


def generate_room_id() -> str:
    """Generate a numeric custom-room id like the in-game lobby ids"""
    return str(random.randint(10_000_000, 99_999_999))


def generate_room_password(length: int = 6) -> str:
    """Generate a short numeric room password"""
    return ''.join(secrets.choice('0123456789') for _ in range(length))
