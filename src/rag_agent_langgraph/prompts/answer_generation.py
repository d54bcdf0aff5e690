"""
Answer Generation Prompts

Generates grounded answers using only retrieved context. The quality
instruction switches to a low-confidence variant when the rewrite loop was
exhausted without the evidence being judged relevant.
"""

HIGH_CONFIDENCE_INSTRUCTION = """The retrieved documents were judged relevant to the question. Answer directly and confidently based on them."""

LOW_CONFIDENCE_INSTRUCTION = """The retrieved documents were NOT judged relevant after several reformulations of the question. Only answer what can be directly supported by the context. If the context is insufficient, clearly state: "The provided context does not contain enough information to answer this question completely." """


BASE_PROMPT = """You are an assistant for question-answering tasks. Use the following pieces of retrieved context to answer the question. If you don't know the answer, just say that you don't know. Use three sentences maximum and keep the answer concise.

{quality_instruction}

Here is the initial question:

-------

{question}

-------

Here is the context that you should use to answer the question:

-------

{context}

-------

Answer:"""


GPT5_PROMPT = """Answer the question using ONLY the context. Max three sentences. Say you don't know if the context doesn't cover it.

{quality_instruction}

<question>
{question}
</question>

<context>
{context}
</context>"""


NO_CONTEXT_PROMPT = """Respond to this message concisely: {question}"""


INSUFFICIENT_EVIDENCE_ANSWER = (
    "I apologize, but I could not retrieve any relevant documents to answer your question. "
    "Please try rephrasing your query or check if the information exists in the knowledge base."
)
