"""Prompt templates for the moderation oracle.

Each template uses ``{placeholder}`` syntax for ``str.format()``.  Literal
braces in the JSON examples are doubled.
"""

SYSTEM_PROMPT = (
    "You are a content moderator for a short-form video and social platform. "
    "Answer with valid JSON only, without markdown fences or commentary."
)

# ---------------------------------------------------------------------------
# Content moderation
# ---------------------------------------------------------------------------

CONTENT_SUBJECTS = {
    "text": "this {language} text",
    "image": "this image description",
    "video": "this video description",
    "audio": "this audio transcription",
}

CONTENT_MODERATION_PROMPT = """\
Analyze {subject} for policy violations:

"{content}"

The author has {recent_violations} recent violations.

Respond with a JSON object with these fields:
- isViolation: boolean, true if the content violates platform policies
- categories: array drawn from 'hate', 'harassment', 'sexual', 'violence', \
'self-harm', 'misinformation', 'spam', 'clean'
- primaryCategory: the main category
- confidence: your confidence in this analysis, 0 to 1
- recommendedAction: one of 'allow', 'warn', 'suspend', 'ban'
- explanation: one or two sentences
"""

# ---------------------------------------------------------------------------
# Visual analysis
# ---------------------------------------------------------------------------

VISUAL_ANALYSIS_PROMPT = """\
Analyze the following description of a video's frames{child_note}.

"{description}"

Respond with a JSON object with these fields:
- isSafe: boolean
- inappropriateVisual: array of labels, use 'possible_adult_content' for adult content
- violentContent: array of labels, empty if none
- sensitiveContent: array of labels, use 'suggestive_imagery' for suggestive imagery \
and 'child_safety_concern' for child safety issues
- lowQualityContent: boolean
- awkwardExpressions: boolean
- excessiveExaggeration: boolean
- confidence: your confidence in this analysis, 0 to 1
"""

CHILD_CONTENT_NOTE = " (the video is aimed at children, apply extra scrutiny)"

# ---------------------------------------------------------------------------
# Language detection and explanations
# ---------------------------------------------------------------------------

LANGUAGE_PROMPT = """\
Identify the language of this text: "{text}".
If it is Telugu, respond with "telugu".
If it is English, respond with "english".
If it is a mix of Telugu and English, respond with "telugu-english".
Otherwise respond with "other".
Respond with only one word.
"""

EXPLANATION_PROMPT = """\
You are explaining a moderation decision to the author of the content.

Content: "{content}"

Decision: {verdict}
Category: {category}
Action: {action}

Explain which parts of the content triggered the decision and which \
community guideline applies. Keep it under 150 words.
"""

EXPLANATION_FALLBACK = (
    "We couldn't generate a detailed explanation at this time, but this "
    "content was flagged based on our community guidelines."
)

# ---------------------------------------------------------------------------
# Hate speech and sentiment
# ---------------------------------------------------------------------------

TEXT_INTROS = {
    "telugu": "This text is in Telugu.",
    "telugu-english": "This text mixes Telugu and English (code-switching).",
}

HATE_SPEECH_PROMPT = """\
{intro}Analyze the following text for hate speech or offensive content.

Text: "{content}"
{feedback_note}
Respond with a JSON object containing:
- isHateSpeech: boolean
- category: one of "hate", "offensive" or "clean"
- severity: one of "high", "medium", "low" or "none"
- confidence: number between 0 and 1
- targetGroups: array of groups targeted by the text, empty if none
- explanation: one sentence explaining the classification
"""

FEEDBACK_NOTE = (
    "\nReviewers have previously {verdict} with our classification of "
    "similar content. Take this into account.\n"
)

SENTIMENT_PROMPT = """\
{intro}Analyze the sentiment of the following text.

Text: "{content}"

Respond with a JSON object containing:
- sentiment: one of "positive", "negative", "neutral" or "mixed"
- scores: object with a score between 0 and 1 for each of positive, negative, neutral and mixed
- dominantEmotion: the single strongest emotion, e.g. "joy", "anger", "sadness"
- confidence: number between 0 and 1
"""
