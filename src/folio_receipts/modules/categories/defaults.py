from __future__ import annotations

from dataclasses import dataclass

OTHER_CATEGORY = "Other"
DRINKS_BROAD_TYPE = "Drinks"


@dataclass(frozen=True)
class DefaultCategoryType:
    name: str
    color: str


@dataclass(frozen=True)
class DefaultCategory:
    name: str
    type: str
    color: str
    broad_type: str = "Other"


DEFAULT_RECEIPT_CATEGORY_TYPES: tuple[DefaultCategoryType, ...] = (
    DefaultCategoryType("Protein", "#ef4444"),
    DefaultCategoryType("Carbs", "#f59e0b"),
    DefaultCategoryType("Fat", "#eab308"),
    DefaultCategoryType("Fiber", "#10b981"),
    DefaultCategoryType("Vitamins/Minerals", "#3b82f6"),
    DefaultCategoryType("Other", "#64748b"),
)

DEFAULT_RECEIPT_CATEGORIES: tuple[DefaultCategory, ...] = (
    # Protein
    DefaultCategory("Meat", "Protein", "#dc2626", "Food"),
    DefaultCategory("Fish & Seafood", "Protein", "#ea580c", "Food"),
    DefaultCategory("Deli", "Protein", "#c2410c", "Food"),
    DefaultCategory("Eggs", "Protein", "#991b1b", "Food"),
    DefaultCategory("Plant-Based Protein", "Protein", "#7f1d1d", "Food"),
    # Carbs
    DefaultCategory("Bread & Bakery", "Carbs", "#d97706", "Food"),
    DefaultCategory("Pasta, Rice & Cereal", "Carbs", "#b45309", "Food"),
    DefaultCategory("Snacks", "Carbs", "#92400e", "Food"),
    DefaultCategory("Baking", "Carbs", "#78350f", "Food"),
    # Fat
    DefaultCategory("Dairy", "Fat", "#fbbf24", "Food"),
    DefaultCategory("Condiments & Spices", "Fat", "#f59e0b", "Food"),
    DefaultCategory("Oils & Fats", "Fat", "#d97706", "Food"),
    # Fiber
    DefaultCategory("Fruits", "Fiber", "#059669", "Food"),
    DefaultCategory("Vegetables", "Fiber", "#047857", "Food"),
    DefaultCategory("Canned Goods", "Fiber", "#065f46", "Food"),
    # Vitamins/Minerals
    DefaultCategory("Frozen Foods", "Vitamins/Minerals", "#2563eb", "Food"),
    DefaultCategory("Water", "Vitamins/Minerals", "#0ea5e9", DRINKS_BROAD_TYPE),
    DefaultCategory("Soda & Cola", "Vitamins/Minerals", "#1d4ed8", DRINKS_BROAD_TYPE),
    DefaultCategory("Energy Drinks", "Vitamins/Minerals", "#f59e0b", DRINKS_BROAD_TYPE),
    DefaultCategory("Juice", "Vitamins/Minerals", "#3b82f6", DRINKS_BROAD_TYPE),
    DefaultCategory("Coffee & Tea", "Vitamins/Minerals", "#6b7280", DRINKS_BROAD_TYPE),
    DefaultCategory("Alcohol", "Vitamins/Minerals", "#9333ea", DRINKS_BROAD_TYPE),
    DefaultCategory("Beverages", "Vitamins/Minerals", "#1d4ed8", DRINKS_BROAD_TYPE),
    DefaultCategory("Drinks", "Vitamins/Minerals", "#1e40af", DRINKS_BROAD_TYPE),
    DefaultCategory("Health Care", "Vitamins/Minerals", "#1e3a8a", "Health Care"),
    # Non-food
    DefaultCategory("Personal Care", "Vitamins/Minerals", "#1e40af", "Personal Care"),
    DefaultCategory("Household & Cleaning Supplies", "Vitamins/Minerals", "#1e3a8a", "Household"),
    DefaultCategory("Baby Items", "Vitamins/Minerals", "#1e40af", "Personal Care"),
    DefaultCategory("Pet Care", "Vitamins/Minerals", "#1e3a8a", "Pet Care"),
    DefaultCategory("Bags", "Other", "#64748b", "Household"),
    DefaultCategory(OTHER_CATEGORY, "Vitamins/Minerals", "#64748b", "Other"),
)
