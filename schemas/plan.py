"""Daily meal plan schemas."""

from pydantic import BaseModel, Field
from typing import List, Optional


class Recipe(BaseModel):
    """A single meal of the plan."""
    name: str = Field(..., description="Recipe name")
    type: str = Field(..., description="Meal type: breakfast, lunch, dinner or snack")
    ingredients: List[str] = Field(..., description="Ingredients with quantities")
    preparation: str = Field(..., description="Step-by-step preparation")
    calories: float = Field(..., ge=0, description="Total calories (kcal)")
    carbohydrates: float = Field(..., ge=0, description="Carbohydrates (g)")
    proteins: float = Field(..., ge=0, description="Proteins (g)")
    fats: float = Field(..., ge=0, description="Fats (g)")


class DailyMeals(BaseModel):
    """Meals of one day; the snack is optional."""
    breakfast: Recipe
    lunch: Recipe
    dinner: Recipe
    snack: Optional[Recipe] = None

    def all_meals(self) -> List[Recipe]:
        meals = [self.breakfast, self.lunch, self.dinner]
        if self.snack is not None:
            meals.append(self.snack)
        return meals


class DailyPlan(BaseModel):
    """Generated plan for one day of the program."""
    day: int = Field(..., ge=1, description="Day of the program, starting at 1")
    meals: DailyMeals
    tasks: List[str] = Field(default_factory=list, description="Daily routine tasks")


class PlanRequest(BaseModel):
    """Request body for plan (re)generation."""
    feedback: Optional[str] = Field(None, max_length=500, description="Adjustment requested by the user")


class ShoppingListResponse(BaseModel):
    """Shopping list generated from a plan."""
    day: int
    shopping_list: str
