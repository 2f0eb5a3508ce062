"""
Prompt templates for the RAG system.

The system prompt pins the model to the retrieved context; the user prompt
carries that context and the question.
"""

NO_INFORMATION_ANSWER = "I don't have that specific information in my current knowledge base."

SYSTEM_PROMPT = f"""You are a helpful and supportive assistant for the CSEC Dev Division.
Answer concisely and directly, using ONLY the provided context.

Rules:
1. If the context contains the answer, give it directly.
2. If the question is about another CSEC division and the context does not cover it, say that other divisions don't have an information bot yet and suggest asking them in person.
3. For any other question the context does not answer, reply exactly: '{NO_INFORMATION_ANSWER}'
4. Keep the tone light and friendly.
5. If the user greets you, greet them back."""

USER_PROMPT_TEMPLATE = """Based on the following context, answer the user's question:

Context:
{context}

User Question: {question}"""


def build_user_prompt(context: str, question: str) -> str:
    """
    Build the grounded user prompt.

    Args:
        context: Retrieved chunk texts, already joined
        question: The user's question

    Returns:
        Prompt text
    """
    return USER_PROMPT_TEMPLATE.format(context=context, question=question)
