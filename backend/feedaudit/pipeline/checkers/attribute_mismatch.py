"""Attribute mismatch checks: title wording vs. declared gender / age group.

Vocabulary is matched whole-word and case-insensitively, so "Women's"
hits "women" while "Mentor" does not hit "men".
"""

from feedaudit.pipeline.schemas import ErrorResult, FeedItem
from feedaudit.pipeline.checkers.base import finding
from feedaudit.pipeline.text_normalizer import contains_any_word

FEMALE_WORDS = ["female", "women", "woman", "girl", "females", "girls"]
MALE_WORDS = ["male", "men", "man", "boy", "boys"]
KID_WORDS = ["kid", "toddler", "infant", "baby", "newborn", "kids", "babies"]
ADULT_WORDS = ["adult", "men", "women", "man", "woman"]

KID_AGE_GROUPS = {"newborn", "infant", "toddler", "kids"}


def check_gender_mismatch(item: FeedItem) -> ErrorResult | None:
    if not item.title or not item.gender:
        return None
    gender = item.gender.strip().lower()
    female_title = contains_any_word(FEMALE_WORDS, item.title)
    male_title = contains_any_word(MALE_WORDS, item.title)
    if (female_title and gender == "male") or (male_title and gender == "female"):
        return finding(
            item, "Gender Mismatch",
            "Mismatch between title gender reference and gender attribute",
            "gender",
            f'Title: "{item.title}", Gender: "{item.gender}"',
        )
    return None


def check_age_group_mismatch(item: FeedItem) -> ErrorResult | None:
    if not item.title or not item.age_group:
        return None
    age_group = item.age_group.strip().lower()
    kid_title = contains_any_word(KID_WORDS, item.title)
    adult_title = contains_any_word(ADULT_WORDS, item.title)
    if (kid_title and age_group == "adult") or (adult_title and age_group in KID_AGE_GROUPS):
        return finding(
            item, "Age Group Mismatch",
            "Mismatch between title age reference and age_group attribute",
            "age_group",
            f'Title: "{item.title}", Age Group: "{item.age_group}"',
        )
    return None
