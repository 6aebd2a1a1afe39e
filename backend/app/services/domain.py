"""Skill-domain classification from language share and repository topics."""
from typing import Iterable, Sequence

from ..schemas.insights import DomainScore

GENERALIST = "Generalist"

# Language signal is percentage / LANGUAGE_DIVISOR, topic signal is
# matches * TOPIC_FACTOR, both scaled by the domain weight.
LANGUAGE_DIVISOR = 5
TOPIC_FACTOR = 0.3
GENERALIST_THRESHOLD = 2.0

# Order matters: on equal scores the earlier domain wins.
DOMAIN_WEIGHTS: dict[str, dict] = {
    "Systems Programming": {
        "languages": ["C", "C++", "Rust", "Assembly", "Zig"],
        "topics": ["linux", "kernel", "operating-system", "embedded", "systems", "compiler", "low-level"],
        "weight": 3,
    },
    "AI/ML": {
        "languages": ["Python"],
        "topics": [
            "tensorflow", "pytorch", "scikit-learn", "machine-learning",
            "deep-learning", "neural-network", "ai", "ml",
        ],
        "weight": 3,
    },
    "Data Science": {
        "languages": ["Python", "R", "Julia"],
        "topics": ["pandas", "numpy", "matplotlib", "jupyter", "data-science", "analytics", "visualization"],
        "weight": 2.5,
    },
    "Mobile Development": {
        "languages": ["Kotlin", "Swift", "Dart", "Objective-C"],
        "topics": ["android", "ios", "flutter", "react-native", "mobile"],
        "weight": 2.5,
    },
    "Game Development": {
        "languages": ["C++", "C#", "GDScript"],
        "topics": ["unity", "unreal", "godot", "game", "gamedev", "gaming"],
        "weight": 2.5,
    },
    "DevOps/Infrastructure": {
        "languages": ["Shell", "Python", "Go", "HCL"],
        "topics": [
            "docker", "kubernetes", "ci", "cd", "github-actions",
            "terraform", "ansible", "devops", "infrastructure",
        ],
        "weight": 2,
    },
    "Blockchain/Web3": {
        "languages": ["Solidity", "Rust", "Go"],
        "topics": ["blockchain", "ethereum", "web3", "smart-contract", "cryptocurrency", "defi"],
        "weight": 2.5,
    },
    "Backend Development": {
        "languages": ["Go", "Java", "Python", "Ruby", "PHP", "Elixir"],
        "topics": ["api", "backend", "server", "microservices", "database", "graphql", "rest"],
        "weight": 1.5,
    },
    "Web Development": {
        "languages": ["JavaScript", "TypeScript", "HTML", "CSS"],
        "topics": ["react", "vue", "angular", "nextjs", "svelte", "tailwindcss", "frontend", "web"],
        "weight": 1,
    },
}


def score_domain(rules: dict, language_share: dict[str, float], topic_set: set[str]) -> float:
    weight = rules["weight"]
    score = 0.0
    for language in rules["languages"]:
        if language in language_share:
            score += (language_share[language] / LANGUAGE_DIVISOR) * weight
    topic_matches = sum(1 for topic in rules["topics"] if topic in topic_set)
    score += topic_matches * (weight * TOPIC_FACTOR)
    return score


def infer_domain(
    language_percentages: Iterable[Sequence],
    top_topics: Iterable[Sequence],
) -> DomainScore:
    """Pick the best scoring domain, or Generalist when nothing stands out.

    ``language_percentages`` is ``[(language, percent), ...]`` and
    ``top_topics`` is ``[(topic, count), ...]``, usually the top 10.
    """
    language_share = {language: pct for language, pct in language_percentages}
    topic_set = {topic for topic, _ in top_topics}

    scores = {
        domain: score_domain(rules, language_share, topic_set)
        for domain, rules in DOMAIN_WEIGHTS.items()
    }

    best_domain, best_score = None, 0.0
    for domain, score in scores.items():
        if best_domain is None or score > best_score:
            best_domain, best_score = domain, score

    domain = best_domain if best_score > GENERALIST_THRESHOLD else GENERALIST
    return DomainScore(domain=domain, scores=scores)
