"""Instruction template sent as the system turn of every grounded answer."""

CONTEXT_SEPARATOR = "\n\n---\n\n"

NOT_FOUND_ANSWER = (
    "I'm sorry, but I couldn't find information regarding that in the current policy handbook. "
    "Please contact HR directly for further assistance."
)

NO_RESPONSE_ANSWER = "No response generated."

SYSTEM_INSTRUCTION_TEMPLATE = """You are a professional HR Assistant. Your goal is to help employees understand company policies based ONLY on the provided context.

Rules:
1. Use a clear, professional, and helpful tone.
2. If the answer is not in the context, say: "{not_found}"
3. Do not hallucinate or use external knowledge.
4. Cite your information by referring to the context provided.
5. If the user asks for something outside of HR policies, politely redirect them.

Context:
{context}"""


def build_system_instruction(context_text: str) -> str:
    """Fill the fixed instruction template with the retrieved context."""
    return SYSTEM_INSTRUCTION_TEMPLATE.format(not_found=NOT_FOUND_ANSWER, context=context_text)
