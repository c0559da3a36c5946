from typing import Dict, Iterable, List

from .models import FlagRule, Language, Question, QuestionCategory, TriageLevel


TOTAL_QUESTIONS = 5

CATEGORY_ORDER: List[QuestionCategory] = [
    QuestionCategory.DURATION,
    QuestionCategory.LOCATION,
    QuestionCategory.SEVERITY,
    QuestionCategory.HISTORY,
    QuestionCategory.TRIGGERS,
]

DEFAULT_TOPIC_KEYS = (
    "indigestion", "headache", "sore_throat", "cough", "fever", "back_pain",
)

NO_TOPIC_SENTINEL = "DOES NOT FIT IN ANY TOPIC"

LANGUAGE_NAMES = {
    Language.EN: "English",
    Language.AM: "Amharic",
}

# Fallback questions, one per category, used to pad whatever the model returns.
DEFAULT_QUESTIONS: Dict[Language, Dict[QuestionCategory, str]] = {
    Language.EN: {
        QuestionCategory.DURATION: "When did you first notice this symptom?",
        QuestionCategory.LOCATION: "Where exactly do you feel this symptom?",
        QuestionCategory.SEVERITY: "How would you rate the severity from 1-10?",
        QuestionCategory.HISTORY: "Do you have any relevant medical history or ongoing conditions?",
        QuestionCategory.TRIGGERS: "What makes this symptom better or worse?",
    },
    Language.AM: {
        QuestionCategory.DURATION: "ይህ ምልክት መቼ ጀመረ?",
        QuestionCategory.LOCATION: "ይህ ምልክት የት ይሰማዎታል?",
        QuestionCategory.SEVERITY: "ከ1-10 ምን ያህል ከባድ ነው?",
        QuestionCategory.HISTORY: "ከዚህ በፊት የነበረ የጤና ችግር ወይም የሚወስዱት መድሃኒት አለ?",
        QuestionCategory.TRIGGERS: "ምን ያደርገዋል ይህ ምልክት የተሻለ ወይስ የተባሰ?",
    },
}

# What a valid answer must carry, per category.
ANSWER_REQUIREMENTS: Dict[QuestionCategory, str] = {
    QuestionCategory.DURATION: "should include a time period (hours, days, weeks, since when)",
    QuestionCategory.LOCATION: "should specify a body part or area",
    QuestionCategory.SEVERITY: "should indicate a pain level or intensity",
    QuestionCategory.HISTORY: "should mention relevant medical background, or clearly state there is none",
    QuestionCategory.TRIGGERS: "should describe what causes, eases or worsens the symptom, or state that nothing does",
}

TRIAGE_MESSAGES: Dict[TriageLevel, Dict[Language, str]] = {
    TriageLevel.RED: {
        Language.EN: "Seek emergency care immediately. Go to the nearest hospital or emergency service.",
        Language.AM: "ወዲያውኑ የህክምና እርዳታ ይፈልጉ። ወደ ቅርብ ሆስፒታል ወይም የድንገተኛ ጊዜ አገልግሎት ይሂዱ።",
    },
    TriageLevel.YELLOW: {
        Language.EN: "Monitor your symptoms closely. Consult a healthcare professional if they don't improve or worsen.",
        Language.AM: "ምልክቶችዎን በጥንቃቄ ይከታተሉ። ካልተሻሻለ ወይም ከባሰ የህክምና ባለሙያ ያማክሩ።",
    },
    TriageLevel.GREEN: {
        Language.EN: "Your symptoms appear to be mild. Follow self-care recommendations.",
        Language.AM: "ምልክቶችዎ ቀላል ሊሆኑ ይችላሉ። የራስ እንክብካቤ ምክሮችን ይከተሉ።",
    },
}

CLARIFICATION_MESSAGES: Dict[Language, str] = {
    Language.EN: (
        "I'm sorry, I couldn't clearly understand the symptoms you described. "
        "Could you please explain your symptoms in a different way or provide more details?"
    ),
    Language.AM: (
        "ይቅርታ፣ የገለጹልኝን ምልክቶች በግልጽ ለመረዳት አልቻልኩም። "
        "ምልክቶችዎን በሌላ መንገድ ሊያስረዱኝ ወይም ተጨማሪ ዝርዝር ሊሰጡኝ ይችላሉ?"
    ),
}

EMERGENCY_NOTICES: Dict[Language, str] = {
    Language.EN: "This appears to be an emergency situation. Please seek immediate medical attention or call emergency services.",
    Language.AM: "ይህ የድንገተኛ ሁኔታ ይመስላል። እባክዎ ወዲያውኑ የህክምና እርዳታ ይፈልጉ ወይም የድንገተኛ አገልግሎት ይደውሉ።",
}

SYMPTOM_REJECTED_MESSAGES: Dict[Language, str] = {
    Language.EN: "Please describe your specific health symptom or concern clearly.",
    Language.AM: "እባክዎ የሚሰማዎትን የጤና ችግር በግልጽ ይግለጹ።",
}

ANSWER_REPROMPT_MESSAGES: Dict[Language, str] = {
    Language.EN: "Could you give a bit more detail in your answer?",
    Language.AM: "እባክዎ በመልስዎ ላይ ትንሽ ተጨማሪ ዝርዝር ይስጡ።",
}

COMPLETION_MESSAGES: Dict[Language, str] = {
    Language.EN: "All questions completed. You can now view your health report and remedy.",
    Language.AM: "ሁሉም ጥያቄዎች ተጠናቀዋል። አሁን የጤና ሪፖርትዎን እና ምክሩን ማየት ይችላሉ።",
}


def default_question(category: QuestionCategory, language: Language) -> Question:
    position = CATEGORY_ORDER.index(category) + 1
    return Question(
        id=position,
        text=DEFAULT_QUESTIONS[language][category],
        category=category,
        # The triggers question is the only optional one in the default bank.
        required=category != QuestionCategory.TRIGGERS,
    )


def default_questions(language: Language) -> List[Question]:
    return [default_question(category, language) for category in CATEGORY_ORDER]


def match_flag_keywords(text: str, rules: Iterable[FlagRule]) -> List[str]:
    """Return the rule keywords that literally occur in the text (case-insensitive)."""
    lowered = text.lower()
    matched: List[str] = []
    for rule in rules:
        for keyword in rule.keywords:
            if keyword.lower() in lowered and keyword not in matched:
                matched.append(keyword)
    return matched
