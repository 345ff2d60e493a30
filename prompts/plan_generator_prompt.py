"""Daily meal plan generator prompts."""

from langchain_core.prompts import PromptTemplate

PLAN_GENERATOR_SYSTEM_PROMPT = PromptTemplate.from_template(
    """You are an expert nutritionist for a 28-day low-carbohydrate weight-loss program.
Your task is to create a detailed daily meal plan that promotes satiety and healthy weight loss.
Return ONLY the JSON object, with no extra text or markdown."""
)

PLAN_GENERATOR_PROMPT = PromptTemplate.from_template(
    """Create the meal plan for Day {day} of the {plan_duration}-day program for this user:
- Name: {name}
- Age: {age}
- Weight: {weight} kg
- Height: {height} cm
- Goal: {goal}
- Dietary restrictions: {restrictions}

{feedback_instruction}

Follow ALL rules below strictly.

1. MACRONUTRIENTS (MANDATORY)
- Calories: at most 1,400 kcal per day.
- Protein: about 100 g per day, split across 4 to 5 meals.
- Carbohydrates: at most 80 g per day.
- Fats: at most 60 g per day, avoiding saturated fats.

2. DETOX RULES
{detox_rules}

3. PLAN STRUCTURE (MANDATORY)
- Include breakfast, lunch, an afternoon snack and dinner.
- Dinner is always a light protein (chicken, fish) or a whey shake with a red fruit.
- Include Greek or plain yogurt in at least one meal.
- For each recipe, suggest a substitution for one main ingredient.

4. TASKS
- Create 3 daily tasks based on: drink 2 to 2.5 L of water, sleep at least 6 hours,
  have lunch before 2 pm (never skip it), plan the next day.

5. RED MEAT
- Only after Day 10, at most twice a week, 150 g portions.

{format_instructions}"""
)

DETOX_RULES = """This is Day {day} of the 10-day detox. These rules are MANDATORY:
- Days 1 to 4: no grains (rice, beans, quinoa, oats, peanuts, soy).
- Fruit: only 1 to 2 portions per day.
- Detox juice daily; kale at most 3 times a week.
- Drinks: teas allowed, up to 3 small coffees before 3 pm, no alcohol.
- No gluten, no animal milk (except light cream cheese and cottage cheese),
  no refined sugar, no red or processed meat."""

NO_DETOX_RULES = "The detox phase is over; the general rules still apply."

FEEDBACK_INSTRUCTION = """IMPORTANT: the user asked to adjust this day's plan. Their feedback was: "{feedback}".
Create a NEW plan for Day {day} that honours this preference while keeping to every rule."""
