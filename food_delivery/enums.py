import enum


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class FoodType(str, enum.Enum):
    VEGETARIAN = "Vegetarian"
    NON_VEGETARIAN = "Non-Vegetarian"
    VEGAN = "Vegan"
    EGGITARIAN = "Eggitarian"
    JAIN = "Jain"


class CuisineType(str, enum.Enum):
    NORTH_INDIAN = "North Indian"
    SOUTH_INDIAN = "South Indian"
    CHINESE = "Chinese"
    ITALIAN = "Italian"
    MEXICAN = "Mexican"
    CONTINENTAL = "Continental"
    DESSERTS = "Desserts"
    BEVERAGES = "Beverages"
    FAST_FOOD = "Fast Food"
    VEGAN = "Vegan"
    STREET_FOOD = "Street Food"
    BAKERY = "Bakery"
    SEAFOOD = "Seafood"
    ARABIAN = "Arabian"
    JAPANESE = "Japanese"
    THAI = "Thai"


class WeekDay(str, enum.Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class OfferAction(str, enum.Enum):
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
