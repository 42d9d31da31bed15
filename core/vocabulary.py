"""Static vocabulary catalog, category difficulty levels and answer distractors."""

import math
import random
import re

from .answers import levenshtein, normalize
from .config import DEFAULT_CATEGORY_DIFFICULTY, CUSTOM_CATEGORY, CUSTOM_CATEGORY_NAME
from .models import Item

# Spanish to English vocabulary by category
VOCABULARY = {
    'greetings': {
        'name': 'Greetings',
        'items': {
            'hola': 'hello,hi',
            'adiós': 'goodbye,bye',
            'buenos días': 'good morning',
            'buenas noches': 'good night',
            'gracias': 'thank you,thanks',
            'por favor': 'please',
            'de nada': "you're welcome",
            'hasta luego': 'see you later'
        }
    },
    'basics': {
        'name': 'Basics',
        'items': {
            'sí': 'yes',
            'no': 'no',
            'el agua': 'water',
            'la casa': 'house,home',
            'el amigo': 'friend',
            'el día': 'day',
            'la noche': 'night',
            'bien': 'well,good'
        }
    },
    'numbers': {
        'name': 'Numbers',
        'items': {
            'uno': '1,one',
            'dos': '2,two',
            'tres': '3,three',
            'cuatro': '4,four',
            'cinco': '5,five',
            'seis': '6,six',
            'siete': '7,seven',
            'ocho': '8,eight',
            'nueve': '9,nine',
            'diez': '10,ten'
        }
    },
    'daily': {
        'name': 'Daily Life',
        'items': {
            'el lunes': 'monday',
            'el martes': 'tuesday',
            'el miércoles': 'wednesday',
            'el jueves': 'thursday',
            'el viernes': 'friday',
            'la mañana': 'morning',
            'la tarde': 'afternoon,evening',
            'hoy': 'today'
        }
    },
    'family': {
        'name': 'Family',
        'items': {
            'la madre': 'mother,mom',
            'el padre': 'father,dad',
            'el hermano': 'brother',
            'la hermana': 'sister',
            'el abuelo': 'grandfather,grandpa',
            'la abuela': 'grandmother,grandma',
            'el hijo': 'son',
            'la hija': 'daughter'
        }
    },
    'home': {
        'name': 'Home',
        'items': {
            'la cocina': 'kitchen',
            'el baño': 'bathroom',
            'la cama': 'bed',
            'la mesa': 'table',
            'la silla': 'chair',
            'la puerta': 'door',
            'la ventana': 'window'
        }
    },
    'food': {
        'name': 'Food & Drink',
        'items': {
            'el pan': 'bread',
            'la leche': 'milk',
            'el queso': 'cheese',
            'el huevo': 'egg',
            'el arroz': 'rice',
            'la manzana': 'apple',
            'el pollo': 'chicken',
            'el café': 'coffee'
        }
    },
    'restaurant': {
        'name': 'Restaurant',
        'items': {
            'la cuenta': 'bill,check',
            'el camarero': 'waiter',
            'la carta': 'menu',
            'la propina': 'tip',
            'el plato': 'dish,plate',
            'la cuchara': 'spoon'
        }
    },
    'clothing': {
        'name': 'Clothing',
        'items': {
            'la camisa': 'shirt',
            'el zapato': 'shoe',
            'el vestido': 'dress',
            'la falda': 'skirt',
            'la chaqueta': 'jacket',
            'el sombrero': 'hat'
        }
    },
    'market': {
        'name': 'Market',
        'items': {
            'el precio': 'price',
            'barato': 'cheap',
            'caro': 'expensive',
            'la tienda': 'shop,store',
            'el dinero': 'money',
            'comprar': 'to buy,buy'
        }
    },
    'weather': {
        'name': 'Weather',
        'items': {
            'el sol': 'sun',
            'la lluvia': 'rain',
            'la nieve': 'snow',
            'el viento': 'wind',
            'la nube': 'cloud',
            'hace calor': "it's hot"
        }
    },
    'animals': {
        'name': 'Animals',
        'items': {
            'el perro': 'dog',
            'el gato': 'cat',
            'el pájaro': 'bird',
            'el caballo': 'horse',
            'la vaca': 'cow',
            'el pez': 'fish'
        }
    },
    'travel': {
        'name': 'Travel',
        'items': {
            'el aeropuerto': 'airport',
            'el billete': 'ticket',
            'la maleta': 'suitcase',
            'el tren': 'train',
            'la estación': 'station',
            'el hotel': 'hotel'
        }
    },
    'emotions': {
        'name': 'Emotions',
        'items': {
            'feliz': 'happy',
            'triste': 'sad',
            'cansado': 'tired',
            'enfadado': 'angry',
            'nervioso': 'nervous',
            'tranquilo': 'calm'
        }
    }
}

# Difficulty level per category (1-15). Levels without a category are skipped
# by level progression.
CATEGORY_DIFFICULTY = {
    'greetings': 1,
    'basics': 1,
    'numbers': 2,
    'daily': 2,
    'family': 3,
    'home': 3,
    'food': 4,
    'restaurant': 4,
    'market': 5,
    'clothing': 5,
    'weather': 6,
    'animals': 6,
    'travel': 7,
    'emotions': 10
}

CATEGORY_DISPLAY_NAMES = {cat: data['name'] for cat, data in VOCABULARY.items()}


def make_item_id(category: str, word: str) -> str:
    """Stable item id: category plus target-language word."""
    return f"{category}:{word}"


def get_all_categories() -> list[str]:
    """Category keys ordered by difficulty, then name."""
    return sorted(VOCABULARY, key=lambda cat: (get_category_difficulty(cat), get_category_name(cat)))


def get_category_name(category: str) -> str:
    """Get display name for a category."""
    return CATEGORY_DISPLAY_NAMES.get(category, category)


def get_category_difficulty(category: str) -> int:
    return CATEGORY_DIFFICULTY.get(category, DEFAULT_CATEGORY_DIFFICULTY)


def get_category_items(category: str) -> list[Item]:
    """Items of one category in catalog order."""
    data = VOCABULARY.get(category, {}).get('items', {})
    name = get_category_name(category)
    return [
        Item(make_item_id(category, word), category, word, translation, name)
        for word, translation in data.items()
    ]


def get_all_items() -> list[Item]:
    """Every catalog item, category by category."""
    items = []
    for category in VOCABULARY:
        items.extend(get_category_items(category))
    return items


def get_item(item_id: str) -> Item | None:
    """Look up a single item by id."""
    category, _, word = item_id.partition(':')
    for item in get_category_items(category):
        if item.text == word:
            return item
    return None


def make_custom_item(text: str, translation: str) -> Item:
    """Item for a word the learner added; ids stay stable across sessions."""
    text = text.strip()
    return Item(make_item_id(CUSTOM_CATEGORY, text), CUSTOM_CATEGORY, text,
                translation.strip(), CUSTOM_CATEGORY_NAME)


def primary_translation(translation: str) -> str:
    """First of the comma-separated alternatives, the one shown as an answer."""
    return translation.split(',')[0].strip()


# Distractor scoring
_ARTICLE = re.compile(r'^(el|la|los|las|un|una|unos|unas)\s+')
_ENDINGS = ('ar', 'er', 'ir', 'cion', 'sion', 'dad', 'mente', 'oso', 'osa', 'ero', 'era')


def _core_word(text: str) -> str:
    return _ARTICLE.sub('', normalize(text))


def similarity_score(word: str, other: str) -> float:
    """How easily two target-language words are confused. Higher = more alike.

    Articles and accents are ignored. Scores spelling distance (up to 50),
    a shared first letter (15) and first two letters (10), similar length
    (up to 10) and a shared common ending (15).
    """
    a, b = _core_word(word), _core_word(other)
    score = 0.0
    max_len = max(len(a), len(b))
    if max_len:
        score += (1 - levenshtein(a, b) / max_len) * 50
    if a[:1] == b[:1]:
        score += 15
    if a[:2] == b[:2]:
        score += 10
    length_diff = abs(len(a) - len(b))
    if length_diff <= 2:
        score += 10 - length_diff * 3
    for ending in _ENDINGS:
        if a.endswith(ending) and b.endswith(ending):
            score += 15
            break
    return score


def get_distractors(target: Item, candidates: list[Item], count: int = 3,
                    rng: random.Random = None) -> list[Item]:
    """Pick wrong answers for a multiple-choice exercise.

    Candidates are ranked by similarity to the target word, with a bonus for
    the same category (+30) and for a difficulty tier within two of the
    target's (+10). The result is drawn at random from the top of that
    ranking so the same word does not always get the same choices. Words
    whose answer reads the same as the target's, or as another pick, are
    left out.
    """
    rng = rng or random
    target_tier = get_category_difficulty(target.category)
    target_answer = primary_translation(target.translation).lower()

    scored = []
    for item in candidates:
        if item.id == target.id or primary_translation(item.translation).lower() == target_answer:
            continue
        score = similarity_score(target.text, item.text)
        if item.category == target.category:
            score += 30
        if abs(get_category_difficulty(item.category) - target_tier) <= 2:
            score += 10
        scored.append((score, item))
    scored.sort(key=lambda entry: entry[0], reverse=True)

    ranked = []
    answers = set()
    for _, item in scored:
        answer = primary_translation(item.translation).lower()
        if answer not in answers:
            answers.add(answer)
            ranked.append(item)

    top = ranked[:max(count * 3, math.ceil(len(ranked) * 0.2))]
    return rng.sample(top, min(count, len(top)))
