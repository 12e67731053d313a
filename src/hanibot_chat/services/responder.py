"""Keyword responder: first matching rule wins."""

import random
import re
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from ..domain.models import Rule

NAME_FALLBACK = "ven"

_NAME_RE = re.compile(r"{{\s*name\s*}}")
_GREET_RE = re.compile(r"{{\s*greet\s*}}")


def make_rule(keywords: Iterable[str], answers: Sequence[str]) -> Rule:
    """Keywords are lower-cased so they can match lower-cased input."""
    return Rule(
        keywords=frozenset(k.lower() for k in keywords),
        answers=tuple(answers),
    )


RULES = (
    make_rule(
        ["hej", "hello", "hi", "hejsa", "halløj"],
        [
            "Hvaså løve hvordan kan jeg hjælpe dig idag? 🤙🏾",
            "Halløj løve!",
            "Goddag løve – {{greet}}",
        ],
    ),
    make_rule(
        ["farvel", "bye", "vi ses", "hej hej"],
        [
            "Farvel løve – vi snakkes! 👋",
            "Vi ses en anden gang, løve!",
            "Ha' en god dag, løve!",
        ],
    ),
    make_rule(
        [
            "Hvem er din skaber",
            "hvem the bossman",
            "hvem lavede dig",
            "hvem skabte dig",
            "hvem er din far",
            "hvem?",
        ],
        ["Hani bassam er min skaber! 😎", "The bossman! 🤩"],
    ),
    make_rule(
        ["tak", "thank you", "mange tak"],
        [
            "Selv tak søster 🙏",
            "Det var så lidt løve!",
            "Altid en fornøjelse at hjælpe en shab i nød 😎",
        ],
    ),
    make_rule(
        ["hvordan har du det", "hvordan går det"],
        [
            "Alhamdullilah bro 🤙🏽",
            "Jeg har det fint min ven – hvad med dig, {{name}}?",
            "Alt spiller her gamle, – {{greet}}",
        ],
    ),
    make_rule(
        ["glad", "fantastisk", "super"],
        [
            "hor fedt at høre lan! 🌞",
            "Elsker at høre det – keep shining champ ✨",
        ],
    ),
    make_rule(
        ["trist", "ked af det", "øv", "down"],
        [
            "Øv, det gør mig ked af det at høre BIG G, {{name}} 🫂",
            "Jeg er her for dig, elsket, Vil du snakke om det ❤️ ?",
        ],
    ),
    make_rule(
        ["sulten", "mad", "pizza", "burger"],
        [
            "Uff kunne godt flække en 🍕 – hvad har du lyst til, {{name}}?",
            "En god burger kan redde dagen, {{name}} 🍔",
        ],
    ),
    make_rule(
        ["træt", "søvnig"],
        [
            "Så er det måske tid til en lur løve 🦁",
            "Husk at passe på dig selv elskede, {{name}} – søvn er vigtigt!",
        ],
    ),
)


def time_greeting(hour: int) -> str:
    """Greeting for a local hour, in four bands."""
    if hour < 5:
        return "oppe sent? 🌙"
    if hour < 11:
        return "godmorgen ☀️"
    if hour < 17:
        return "god eftermiddag 🌤️"
    return "god aften 🌙"


def render_template(template: str, name: str, greet: str) -> str:
    # Callables keep backslashes in names from being read as group references.
    rendered = _NAME_RE.sub(lambda _: name or NAME_FALLBACK, template)
    return _GREET_RE.sub(lambda _: greet, rendered)


class KeywordResponder:
    """Matches text against an ordered rule table by substring containment."""

    def __init__(
        self,
        rules: Sequence[Rule] = RULES,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.rules = tuple(rules)
        self._rng = rng or random.Random()
        self._clock = clock

    def find_rule(self, text: str) -> Optional[Rule]:
        lowered = (text or "").lower()
        for rule in self.rules:
            if any(keyword in lowered for keyword in rule.keywords):
                return rule
        return None

    def match(self, text: str, name: str = "") -> Optional[str]:
        """Return the rendered answer of the first matching rule, or ``None``."""
        rule = self.find_rule(text)
        if rule is None:
            return None
        template = self._rng.choice(rule.answers)
        return render_template(template, name, time_greeting(self._clock().hour))
