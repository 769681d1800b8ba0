"""
Gemini responseSchema declarations (OpenAPI subset) for the schema-constrained features.

Field names here are the wire names validated by the models in schemas.py.
Plagiarism has no entry: search grounding cannot be combined with a constrained output.
"""

from .schemas import Verdict

ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "verdict": {
            "type": "STRING",
            "enum": [v.value for v in Verdict],
            "description": "The final judgment on the content's origin.",
        },
        "confidence": {
            "type": "NUMBER",
            "description": "A confidence score from 0 to 100 for the verdict.",
        },
        "aiPercentage": {
            "type": "NUMBER",
            "description": (
                "The percentage of the content that shows AI influence "
                "(either generative or assistive), from 0 to 100."
            ),
        },
        "explanation": {
            "type": "STRING",
            "description": "A detailed explanation for the verdict, summarizing the key findings.",
        },
        "keyCharacteristics": {
            "type": "ARRAY",
            "description": "A list of specific characteristics found that support the verdict.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "characteristic": {
                        "type": "STRING",
                        "description": (
                            "The name of the characteristic observed (e.g., 'Sentence Uniformity', "
                            "'Unnatural Textures', 'Temporal Inconsistency', 'Robotic Cadence')."
                        ),
                    },
                    "evidence": {
                        "type": "STRING",
                        "description": "A brief quote or description that serves as evidence for this characteristic.",
                    },
                },
                "required": ["characteristic", "evidence"],
            },
        },
        "detailedAnalysis": {
            "type": "ARRAY",
            "description": "A sentence-by-sentence breakdown of the text, classifying each as AI or Human.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "sentence": {"type": "STRING", "description": "The sentence being analyzed."},
                    "classification": {
                        "type": "STRING",
                        "enum": ["AI", "Human"],
                        "description": "Classification of the sentence as 'AI' or 'Human'.",
                    },
                    "reasoning": {
                        "type": "STRING",
                        "description": "A brief reason for the classification of this sentence.",
                    },
                },
                "required": ["sentence", "classification", "reasoning"],
            },
        },
    },
    # aiPercentage stays optional: media and code answers often omit it.
    "required": ["verdict", "confidence", "explanation", "keyCharacteristics"],
}

GRAMMAR_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "correctedText": {
            "type": "STRING",
            "description": "The full text with all grammar and spelling corrections applied.",
        },
        "errors": {
            "type": "ARRAY",
            "description": "A list of specific errors found in the text.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "originalText": {
                        "type": "STRING",
                        "description": "The original text snippet containing the error.",
                    },
                    "correctedText": {
                        "type": "STRING",
                        "description": "The corrected version of the text snippet.",
                    },
                    "explanation": {
                        "type": "STRING",
                        "description": "A brief explanation of the grammatical error and the correction.",
                    },
                },
                "required": ["originalText", "correctedText", "explanation"],
            },
        },
    },
    "required": ["correctedText", "errors"],
}

REWRITE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "suggestions": {
            "type": "ARRAY",
            "description": "A list of rewrite suggestions.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "tone": {
                        "type": "STRING",
                        "description": "The tone of the rewritten text (e.g., 'Formal', 'Casual', 'Shorter').",
                    },
                    "rewrittenText": {
                        "type": "STRING",
                        "description": "The rewritten version of the text.",
                    },
                },
                "required": ["tone", "rewrittenText"],
            },
        },
    },
    "required": ["suggestions"],
}

# Shape spelled out in the plagiarism prompt instead of a responseSchema.
PLAGIARISM_SHAPE = (
    '{ "similarityScore": number, "summary": string, '
    '"matchedSources": [{ "url": string, "title": string, "similarity": number, "snippet": string }] }'
)
