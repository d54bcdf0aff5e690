"""Relevance Grading Prompts - binary yes/no relevance of retrieved docs to the question."""

BASE_PROMPT = """You are a grader assessing relevance of retrieved docs to a user question.
Here are the retrieved docs:

-------

{context}

-------

Here is the user question: {question}

If the content of the docs are relevant to the users question, score them as relevant.
Give a binary score 'yes' or 'no' score to indicate whether the docs are relevant to the question.
Yes: The docs are relevant to the question.
No: The docs are not relevant to the question.

Report the score by calling the give_relevance_score tool."""


GPT5_PROMPT = """Question: {question}

Retrieved docs:
{context}

Are these docs relevant to the question? Call give_relevance_score with binary_score 'yes' or 'no'."""
