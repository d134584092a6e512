"""Static ingredient data: known vocabulary, denylist, categories, substitutions."""

KNOWN_INGREDIENTS: tuple[str, ...] = (
    # Proteins
    "chicken", "beef", "pork", "fish", "salmon", "tuna", "shrimp", "eggs", "tofu", "beans", "lentils",
    # Vegetables
    "onion", "garlic", "tomato", "potato", "carrot", "celery", "bell pepper", "broccoli", "spinach", "kale",
    "mushrooms", "zucchini", "eggplant", "cucumber", "lettuce", "cabbage", "corn", "peas", "green beans",
    "asparagus", "brussels sprouts", "cauliflower", "sweet potato", "avocado", "radish", "beets",
    # Herbs & spices
    "basil", "oregano", "thyme", "rosemary", "parsley", "cilantro", "dill", "sage", "mint", "chives",
    "salt", "black pepper", "paprika", "cumin", "coriander", "turmeric", "ginger", "cinnamon", "nutmeg",
    "cardamom", "cloves", "bay leaves", "red pepper flakes", "garlic powder", "onion powder",
    # Pantry
    "olive oil", "vegetable oil", "butter", "flour", "sugar", "brown sugar", "honey", "maple syrup",
    "vinegar", "balsamic vinegar", "soy sauce", "worcestershire sauce", "hot sauce", "mustard",
    "ketchup", "mayonnaise", "rice", "pasta", "bread", "oats", "quinoa", "couscous", "barley",
    # Dairy
    "milk", "cream", "yogurt", "cheese", "mozzarella", "cheddar", "parmesan", "feta", "goat cheese",
    "cream cheese", "sour cream", "cottage cheese",
    # Fruits
    "apple", "banana", "orange", "lemon", "lime", "strawberry", "blueberry", "raspberry", "blackberry",
    "grapes", "pineapple", "mango", "peach", "pear", "plum", "cherry", "watermelon", "cantaloupe",
    "kiwi", "pomegranate", "cranberry", "coconut",
    # Nuts & seeds
    "almonds", "walnuts", "pecans", "peanuts", "cashews", "pistachios", "sunflower seeds", "pumpkin seeds",
    "sesame seeds", "chia seeds", "flax seeds", "pine nuts",
    # Canned / processed
    "tomato sauce", "tomato paste", "coconut milk", "broth", "chicken broth", "vegetable broth",
    "canned beans", "canned tomatoes", "olives", "capers", "pickles", "dried cranberries", "raisins",
)

KNOWN_INGREDIENT_SET = frozenset(KNOWN_INGREDIENTS)

# Non-food terms. Matched by substring, so keep entries specific.
DENYLIST: tuple[str, ...] = (
    "metal", "plastic", "glass", "wood", "paper", "concrete", "stone", "rubber", "fabric",
    "soap", "detergent", "bleach", "ammonia", "alcohol", "gasoline", "oil", "paint",
    "medicine", "pills", "drugs", "poison", "chemicals", "cleaning products",
)

# Ordered by priority: the first category listing an ingredient wins.
CATEGORY_PRIORITY: tuple[tuple[str, frozenset[str]], ...] = (
    ("proteins", frozenset({
        "chicken", "beef", "pork", "fish", "salmon", "tuna", "shrimp", "eggs", "tofu", "beans", "lentils",
    })),
    ("vegetables", frozenset({
        "onion", "garlic", "tomato", "potato", "carrot", "celery", "bell pepper", "broccoli", "spinach", "kale",
    })),
    ("herbs", frozenset({
        "basil", "oregano", "thyme", "rosemary", "parsley", "cilantro", "dill", "sage", "mint", "chives",
    })),
    ("spices", frozenset({
        "salt", "pepper", "black pepper", "paprika", "cumin", "coriander", "turmeric", "ginger", "cinnamon",
        "nutmeg",
    })),
    ("dairy", frozenset({"milk", "cream", "yogurt", "cheese", "butter"})),
    ("fruits", frozenset({"apple", "banana", "orange", "lemon", "lime", "strawberry", "blueberry"})),
    ("pantry", frozenset({"olive oil", "flour", "sugar", "rice", "pasta", "vinegar", "soy sauce"})),
)

DEFAULT_CATEGORY = "other"

SUBSTITUTIONS: dict[str, tuple[str, ...]] = {
    "butter": ("margarine", "coconut oil", "olive oil"),
    "milk": ("almond milk", "oat milk", "coconut milk"),
    "sugar": ("honey", "maple syrup", "brown sugar"),
    "flour": ("almond flour", "coconut flour", "whole wheat flour"),
    "eggs": ("flax eggs", "chia eggs", "applesauce"),
    "cream": ("coconut cream", "cashew cream", "heavy cream"),
    "cheese": ("nutritional yeast", "cashew cheese", "vegan cheese"),
}

MIN_INGREDIENTS = 3
MAX_INGREDIENTS = 15
MAX_INGREDIENT_LENGTH = 50
AUTOCOMPLETE_MIN_CHARS = 2
AUTOCOMPLETE_LIMIT = 10
