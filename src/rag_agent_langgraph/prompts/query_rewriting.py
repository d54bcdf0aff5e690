"""Query Rewriting Prompts - reformulate the original question for another retrieval pass."""

BASE_PROMPT = """Look at the input and try to reason about the underlying semantic intent / meaning.

Here is the initial question:

-------

{question}

-------

Previously tried reformulations (avoid repeating them):
{previous_rewrites}

Formulate an improved question. Preserve all technical terms, acronyms, and proper nouns exactly as written.

Return ONLY the improved question, nothing else."""


GPT5_PROMPT = """Rewrite this question to better express its underlying intent for document search. Keep technical terms and names unchanged.

Question: {question}
Already tried: {previous_rewrites}

Return ONLY the improved question."""
