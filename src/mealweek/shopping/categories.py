"""Keyword-based grocery categorization."""

from __future__ import annotations

from mealweek.models.shopping import GroceryCategory

# Checked in this order; the first category with a keyword contained in the
# ingredient name wins. Anything unmatched is pantry.
CATEGORY_KEYWORDS: tuple[tuple[GroceryCategory, tuple[str, ...]], ...] = (
    (
        GroceryCategory.PRODUCE,
        (
            "apple", "banana", "orange", "lemon", "lime", "avocado", "tomato", "onion",
            "garlic", "carrot", "celery", "lettuce", "spinach", "kale", "arugula",
            "cabbage", "broccoli", "cauliflower", "bell pepper", "jalapeño", "jalapeno",
            "cucumber", "zucchini", "potato", "mushroom", "herbs", "basil", "parsley",
            "cilantro", "oregano", "thyme", "rosemary", "sage", "mint", "ginger",
            "scallion", "shallot", "leek", "radish", "turnip", "beet", "asparagus",
            "green beans", "peas", "corn", "eggplant", "squash", "pumpkin", "berries",
            "strawberr", "blueberr", "raspberr", "melon", "mixed greens", "mixed vegetables",
        ),
    ),
    (
        GroceryCategory.DAIRY,
        (
            "milk", "cream", "half and half", "buttermilk", "cheese", "butter",
            "margarine", "yogurt", "egg",
        ),
    ),
    (
        GroceryCategory.MEAT,
        (
            "beef", "steak", "pork", "lamb", "bacon", "pancetta", "prosciutto", "ham",
            "sausage", "chorizo", "bratwurst", "hot dogs", "deli meat", "salami",
            "pepperoni",
        ),
    ),
    (
        GroceryCategory.POULTRY,
        ("chicken", "turkey", "duck", "cornish hen"),
    ),
    (
        GroceryCategory.SEAFOOD,
        (
            "fish", "salmon", "tuna", "cod", "halibut", "tilapia", "mahi mahi",
            "sea bass", "trout", "mackerel", "sardine", "anchov", "shrimp", "prawn",
            "crab", "lobster", "scallop", "mussel", "clam", "oyster", "calamari",
            "squid", "octopus",
        ),
    ),
    (
        GroceryCategory.BAKERY,
        (
            "bread", "bagel", "english muffin", "croissant", "muffin", "dinner rolls",
            "buns", "pita", "naan", "tortilla", "pie crust", "pizza dough",
            "breadcrumbs", "croutons",
        ),
    ),
    (
        GroceryCategory.FROZEN,
        ("frozen", "ice cream", "sorbet", "ice cubes"),
    ),
    (
        GroceryCategory.SPICES,
        (
            "salt", "black pepper", "white pepper", "red pepper flakes", "cayenne",
            "paprika", "cumin", "coriander", "turmeric", "curry powder", "garam masala",
            "cinnamon", "nutmeg", "allspice", "cloves", "cardamom", "star anise",
            "bay leaves", "garlic powder", "onion powder", "chili powder",
            "vanilla extract", "almond extract", "baking powder", "baking soda", "yeast",
        ),
    ),
    (
        GroceryCategory.BEVERAGES,
        (
            "water", "juice", "coffee", "tea", "soda", "cola", "ginger ale", "beer",
            "wine", "vinegar",
        ),
    ),
)


def categorize_ingredient(name: str) -> GroceryCategory:
    lowered = name.strip().lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return GroceryCategory.PANTRY


__all__ = ["CATEGORY_KEYWORDS", "categorize_ingredient"]
