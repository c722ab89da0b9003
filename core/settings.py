import os
from dotenv import load_dotenv


# Load environment variables early
load_dotenv(dotenv_path=os.getenv("ENV_FILE", ".env.local"))


# Provider selection
# VISION_MODEL_PROVIDER overrides the general MODEL_PROVIDER for image description only.
VISION_MODEL_PROVIDER = os.getenv("VISION_MODEL_PROVIDER", "")
MODEL_PROVIDER = os.getenv("MODEL_PROVIDER", "openai")


# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_ENDPOINT = os.getenv("OPENAI_ENDPOINT", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", "gpt-4o-mini")
OPENAI_VISION_MAX_TOKENS = int(os.getenv("OPENAI_VISION_MAX_TOKENS", "500"))


# Google Gemini
GOOGLE_GENERATIVE_AI_API_KEY = os.getenv("GOOGLE_GENERATIVE_AI_API_KEY", "")
GOOGLE_ENDPOINT = os.getenv("GOOGLE_ENDPOINT", "https://generativelanguage.googleapis.com")
GOOGLE_VISION_MODEL = os.getenv("GOOGLE_VISION_MODEL", "gemini-1.5-pro")


# Local vision model (Florence-2)
LOCAL_VISION_MODEL_ID = os.getenv("LOCAL_VISION_MODEL_ID", "microsoft/Florence-2-base-ft")
LOCAL_MAX_NEW_TOKENS = int(os.getenv("LOCAL_MAX_NEW_TOKENS", "256"))


# Size measurement API
SIZE_API_BASE_URL = os.getenv("SIZE_API_BASE_URL", "https://sizematters.app")
SIZE_API_KEY = os.getenv("SIZE_API_KEY", "")


# Misc
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# -----------------
# Prompt constants
# -----------------

IMAGE_DESCRIPTION_PROMPT = (
    "Describe this image and give it a title. The first line should be the title, "
    "and then a line break, then a detailed description of the image. "
    "Respond with the format 'title\\ndescription'"
)

# Florence-2 task token
LOCAL_CAPTION_TASK = "<DETAILED_CAPTION>"

MEASUREMENT_RESPONSE_TEMPLATE = """# Instructions: Generate a funny response about this size measurement
- The measurement is {measurement}cm
- Make it playful and witty, but not mean
- Include emojis
- Keep it short and fun
- Add a call to action to win $SIZE tokens

Submit your photo: {measurement_url}"""

PLUGIN_RESPONSE_TEMPLATE = "{one_liner}\n\nSize: {measurement}cm\nSubmit to win $SIZE: {measurement_url}"

FUNNY_RESPONSE_PROMPT = (
    "Generate a funny, playful one-liner about something that measures {measurement}cm. "
    "Make it witty and teasing, but not mean. Include emojis."
)

FALLBACK_ONE_LINERS = (
    "📏 {measurement}cm? That's what she said! 😏",
    "🔍 {measurement}cm - Is that all? Just kidding! 😂",
    "📐 {measurement}cm - Size does matter, but so does confidence! 💪",
)

MEASUREMENT_APOLOGY = "Whoopsie! My size-o-meter is having a moment! 🎪 {reason}"
