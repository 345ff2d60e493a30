"""AI meal plan and shopping list generation."""

from typing import Dict, Optional

from langchain_core.output_parsers import PydanticOutputParser, StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.runnables import Runnable

from config.settings import settings
from prompts import (
    DETOX_RULES,
    FEEDBACK_INSTRUCTION,
    NO_DETOX_RULES,
    PLAN_GENERATOR_PROMPT,
    PLAN_GENERATOR_SYSTEM_PROMPT,
    SHOPPING_LIST_PROMPT,
    SHOPPING_LIST_SYSTEM_PROMPT,
)
from schemas.plan import DailyPlan
from schemas.user import UserProfile
from services.llm_factory import LLMUnavailableError, get_llm
from utils.logger import setup_logger

logger = setup_logger(__name__)

DETOX_DAYS = 10
SHOPPING_LIST_FALLBACK = "The shopping list could not be generated right now."


class PlanGenerator:
    """Generates one day of the program at a time.

    Generation is best effort: `generate_daily_plan` returns None on any
    failure and `generate_shopping_list` returns a fixed fallback text.
    """

    def __init__(self, llm: Optional[Runnable] = None):
        self._injected_llm = llm
        self._llms: Dict[str, Runnable] = {}
        self._plan_parser = PydanticOutputParser(pydantic_object=DailyPlan)

    @property
    def is_enabled(self) -> bool:
        return self._injected_llm is not None or settings.ai_configured

    def _get_llm(self, role: str) -> Optional[Runnable]:
        if self._injected_llm is not None:
            return self._injected_llm
        if role not in self._llms:
            try:
                self._llms[role] = get_llm(role)
            except LLMUnavailableError as e:
                logger.warning(f"AI features disabled: {e}")
                return None
        return self._llms[role]

    async def generate_daily_plan(
        self,
        profile: UserProfile,
        day: int,
        feedback: Optional[str] = None,
    ) -> Optional[DailyPlan]:
        """Generate the plan for `day` (1-based), optionally adjusted by feedback."""
        llm = self._get_llm("plan_generator")
        if llm is None:
            return None

        template = ChatPromptTemplate.from_messages([
            ("system", PLAN_GENERATOR_SYSTEM_PROMPT.template),
            ("human", PLAN_GENERATOR_PROMPT.template),
        ])
        chain = template | llm | self._plan_parser

        try:
            plan = await chain.ainvoke({
                "day": day,
                "plan_duration": settings.plan_duration_days,
                "name": profile.name or "Not informed",
                "age": profile.age or "Not informed",
                "weight": profile.weight or "Not informed",
                "height": profile.height or "Not informed",
                "goal": profile.goal or "Weight loss",
                "restrictions": ", ".join(profile.dietary_restrictions) or "None",
                "detox_rules": DETOX_RULES.format(day=day) if day <= DETOX_DAYS else NO_DETOX_RULES,
                "feedback_instruction": FEEDBACK_INSTRUCTION.format(feedback=feedback, day=day) if feedback else "",
                "format_instructions": self._plan_parser.get_format_instructions(),
            })
        except Exception as e:
            logger.error(f"Error generating plan for day {day}: {e}", exc_info=True)
            return None

        if plan.day != day:
            logger.info(f"Model returned day {plan.day} for requested day {day}; correcting")
            plan = plan.model_copy(update={"day": day})
        logger.info(f"Generated plan for day {day} of user {profile.id}")
        return plan

    async def generate_shopping_list(self, plan: DailyPlan) -> str:
        """Turn the plan's ingredients into a categorised shopping list."""
        llm = self._get_llm("shopping_list")
        if llm is None:
            return SHOPPING_LIST_FALLBACK

        ingredients = "\n".join(
            ingredient
            for meal in plan.meals.all_meals()
            for ingredient in meal.ingredients
        )
        template = ChatPromptTemplate.from_messages([
            ("system", SHOPPING_LIST_SYSTEM_PROMPT.template),
            ("human", SHOPPING_LIST_PROMPT.template),
        ])
        chain = template | llm | StrOutputParser()

        try:
            shopping_list = await chain.ainvoke({"ingredients": ingredients})
        except Exception as e:
            logger.error(f"Error generating shopping list for day {plan.day}: {e}", exc_info=True)
            return SHOPPING_LIST_FALLBACK

        return shopping_list.strip() or SHOPPING_LIST_FALLBACK


# Global plan generator instance
plan_generator = PlanGenerator()
