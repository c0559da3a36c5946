"""Prompt builders for every language-model call the core makes."""
import json
from typing import Iterable, List, Sequence

from remedymate.domain.models import (
    ApprovedBlock,
    Conversation,
    FlagRule,
    Language,
    Question,
)
from remedymate.domain.rules import (
    ANSWER_REQUIREMENTS,
    LANGUAGE_NAMES,
    NO_TOPIC_SENTINEL,
    TOTAL_QUESTIONS,
)


def format_flag_rules(rules: Iterable[FlagRule]) -> str:
    lines = []
    for rule in rules:
        line = ", ".join(rule.keywords)
        if rule.description:
            line += ": " + rule.description
        lines.append(line)
    return "\n".join(lines) or "(none)"


def format_topic_summaries(blocks: Iterable[ApprovedBlock], language: Language) -> str:
    """One line per topic: its key and the first two self-care lines."""
    lines = []
    for block in blocks:
        translation = block.translations.get(language.value)
        if translation is None:
            continue
        lines.append(f"{block.topic_key}: " + ", ".join(translation.self_care[:2]))
    return "\n".join(lines) or "(none)"


def build_triage_prompt(
    text: str,
    language: Language,
    red_rules: Sequence[FlagRule],
    yellow_rules: Sequence[FlagRule],
    blocks: Sequence[ApprovedBlock],
) -> str:
    return f"""You are a medical triage classifier. Decide whether the user input describes a medical emergency.
Your ONLY output must be a single JSON object with exactly this structure:
{{"level": "RED" | "YELLOW" | "GREEN" | "UNCLEAR", "flags": ["flag1", "flag2"]}}

CRITICAL RED FLAGS (answer RED if any of these is present):
{format_flag_rules(red_rules)}

YELLOW FLAGS (answer YELLOW if any of these is present and no red flag is):
{format_flag_rules(yellow_rules)}

GREEN (answer GREEN only if the symptom clearly matches one of these approved topics):
{format_topic_summaries(blocks, language)}

UNCLEAR: the input matches none of the above, or you cannot tell what the user is describing.

Be conservative: when unsure between levels, choose the more urgent one.
Do NOT wrap the JSON in markdown.

User input (language: {language.value}): "{text}"
"""


def build_topic_prompt(text: str, topic_keys: Sequence[str]) -> str:
    topic_list = json.dumps(list(topic_keys), indent=2)
    return f"""You are an assistant for a health advisory app. Read the user's symptoms and map them to the single most relevant topic from the list below.

Instructions:
1. Read the symptom description carefully.
2. Choose exactly one topic key from the list.
3. If the description is vague or fits no topic well, return '{NO_TOPIC_SENTINEL}' as the topic key.
4. Respond with a single valid JSON object: {{"topic_key": "<chosen_key>"}}
5. Add no other text, explanation or markdown around the JSON object.

Available topics:
{topic_list}

User's symptom:
"{text}"

JSON response:
"""


def build_symptom_check_prompt(symptom: str, language: Language) -> str:
    return f"""You are a medical AI validator determining if user input represents a legitimate health symptom or concern.

INPUT: "{symptom}"

REJECT:
- greetings ("hello", "good morning") and test input ("test", "123", "abc")
- questions about the app or what it can do
- general medical questions that are not about the user ("what causes headaches?")
- gibberish or random characters

ACCEPT any PERSONAL health experience, even a brief one:
- "I have a headache", "my stomach hurts", "I feel sick", "chest pain"
- mental health concerns such as "I feel anxious" or "I can't sleep"
- injuries such as "I hurt my ankle"
Follow-up questions will collect the details, so do not demand them now.

URGENCY:
- EMERGENCY: severe chest pain, difficulty breathing, severe injuries, suicidal thoughts
- HIGH: significant symptoms that need evaluation
- MEDIUM: moderate symptoms
- LOW: minor concerns

Respond with JSON only:
{{"valid": true/false, "feedback": "short explanation in {LANGUAGE_NAMES[language]}", "urgency_level": "LOW/MEDIUM/HIGH/EMERGENCY", "category": "physical/mental/functional/emergency/invalid"}}
"""


def build_question_prompt(symptom: str, language: Language) -> str:
    return f"""You are a medical AI assistant gathering detailed information about a patient's symptoms.

Generate exactly {TOTAL_QUESTIONS} targeted follow-up questions for a patient reporting: "{symptom}"

Guidelines:
- Questions must be specific to "{symptom}" and useful to a clinician.
- Use clear, simple language.
- Write the questions in {LANGUAGE_NAMES[language]}.
- Keep each question under 100 characters.

Ask exactly one question for each type, in this order:
1. duration: when it started and how it has changed
2. location: where exactly it is and whether it spreads
3. severity: how bad it is (1-10) and how it affects daily activities
4. history: relevant medical background, ongoing conditions or medication
5. triggers: what makes it better or worse

Return ONLY a JSON array, starting with [ and ending with ], with no markdown and no other text:
[
  {{"id": 1, "text": "...", "type": "duration", "required": true}},
  {{"id": 2, "text": "...", "type": "location", "required": true}},
  {{"id": 3, "text": "...", "type": "severity", "required": true}},
  {{"id": 4, "text": "...", "type": "history", "required": true}},
  {{"id": 5, "text": "...", "type": "triggers", "required": false}}
]
"""


def build_answer_check_prompt(question: Question, answer: str) -> str:
    requirement = ANSWER_REQUIREMENTS[question.category]
    return f"""Validate this answer to a medical question.

Question: {question.text}
Question type: {question.category.value}
Answer: {answer}

Requirements:
- The answer must be relevant to the question and informative.
- For a {question.category.value} question the answer {requirement}.
- Short answers are fine when they contain the needed information.

Respond with JSON only:
{{"valid": true/false, "feedback": "what is missing, in the language of the question, if invalid"}}
"""


def format_transcript(conversation: Conversation) -> str:
    questions = {q.id: q for q in conversation.questions}
    lines: List[str] = [
        f"Symptom: {conversation.symptom}",
        f"Language: {conversation.language.value}",
    ]
    for answer in conversation.answers:
        question = questions.get(answer.question_id)
        if question is None:
            continue
        lines.append(f"Q{question.id} ({question.category.value}): {question.text}")
        lines.append(f"A{question.id}: {answer.text}")
    return "\n".join(lines)


def build_report_prompt(conversation: Conversation) -> str:
    return f"""Create a structured health report based on this conversation:

{format_transcript(conversation)}

Return ONE JSON object, with no markdown, containing these fields:
- symptom (string): the main symptom
- duration (string): how long it has been present
- location (string): where it is located
- severity (string): how severe it is
- associated_symptoms (array of strings): other symptoms mentioned
- medical_history (string): relevant medical background
- triggers (string): what causes or worsens it
- possible_conditions (array of strings): possible explanations, not a diagnosis
- recommendations (array of strings): suggested next steps
- urgency_level (string): GREEN, YELLOW or RED
Write the values in {LANGUAGE_NAMES[conversation.language]}.
"""
