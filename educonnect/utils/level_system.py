"""
Level System for EduConnect Platform
Score to level conversion, level progress and level tiers
"""

# (minimum level, trophy, title, badge colour), highest first
LEVEL_TIERS = [
    (50, '🏆', 'Legend', 'from-purple-500 to-pink-500'),
    (40, '💎', 'Diamond', 'from-cyan-500 to-blue-500'),
    (30, '👑', 'King', 'from-yellow-500 to-orange-500'),
    (20, '⭐', 'Star', 'from-blue-500 to-indigo-500'),
    (10, '🥇', 'Gold', 'from-yellow-400 to-yellow-600'),
    (5, '🥈', 'Silver', 'from-gray-300 to-gray-500'),
    (1, '🥉', 'Bronze', 'from-orange-400 to-orange-600'),
]


def get_required_score_for_level(level):
    """
    Score required to reach a level: level + level * 5
    """
    return level + level * 5


def calculate_level(score):
    """
    Calculate level from cumulative score.
    Level 1 is the floor, so any score below the level 2 threshold is level 1.
    """
    level = 1
    while score >= get_required_score_for_level(level + 1):
        level += 1
    return level


def get_score_for_next_level(current_level):
    return get_required_score_for_level(current_level + 1)


def get_level_progress(score, current_level):
    """
    Percentage of the way from the current level threshold to the next one,
    clamped to [0, 100]
    """
    current_level_score = get_required_score_for_level(current_level)
    next_level_score = get_required_score_for_level(current_level + 1)
    score_in_level = score - current_level_score
    score_needed = next_level_score - current_level_score
    return min(100.0, max(0.0, (score_in_level / score_needed) * 100))


def _tier_for_level(level):
    for min_level, trophy, title, color in LEVEL_TIERS:
        if level >= min_level:
            return trophy, title, color
    # Levels below 1 do not exist; treat them as the entry tier
    return LEVEL_TIERS[-1][1:]


def get_trophy_for_level(level):
    return _tier_for_level(level)[0]


def get_level_title(level):
    return _tier_for_level(level)[1]


def get_level_color(level):
    return _tier_for_level(level)[2]


def build_level_summary(score, level):
    """
    Build the level progress block shown on profile and progress pages
    """
    next_level_score = get_score_for_next_level(level)
    trophy, title, color = _tier_for_level(level)

    return {
        'score': score,
        'level': level,
        'current_level_score': get_required_score_for_level(level),
        'next_level_score': next_level_score,
        'points_to_next_level': max(0, next_level_score - score),
        'progress_percentage': get_level_progress(score, level),
        'trophy': trophy,
        'title': title,
        'color': color,
    }
