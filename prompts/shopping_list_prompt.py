"""Shopping list prompt."""

from langchain_core.prompts import PromptTemplate

SHOPPING_LIST_SYSTEM_PROMPT = PromptTemplate.from_template(
    """You are a shopping assistant that writes well organised lists.
Reply only with the list as plain text, using markdown for headings and items."""
)

SHOPPING_LIST_PROMPT = PromptTemplate.from_template(
    """From the following ingredients for one day of meals, create a shopping list
grouped by category (e.g. Produce, Butcher, Grocery). Merge similar items and
remove duplicates. The ingredients are:
{ingredients}"""
)
