"""Per-language static tables for template advisories and defaults.

These back three things: the deterministic answer served when no AI key is
configured, the backfill for fields the model leaves out, and the client's
"service unavailable" advisory.
"""
from krushi_sathi.models.advisory import AdvisoryResponse

DEFAULT_LANG = "en"

LANGUAGE_NAMES = {
    "en": "English",
    "ml": "Malayalam (മലയാളം)",
    "hi": "Hindi (हिन्दी)",
    "mr": "Marathi (मराठी)",
    "kn": "Kannada (ಕನ್ನಡ)",
    "gu": "Gujarati (ગુજરાતી)",
    "te": "Telugu (తెలుగు)",
}

TITLES = {
    "en": "Crop Advisory",
    "ml": "കൃഷി നിർദ്ദേശം",
    "hi": "कृषि सलाह",
    "mr": "पिक सल्ला",
    "kn": "ಬೆಳೆ ಸಲಹೆ",
    "gu": "પાક સલાહ",
    "te": "పంట సలహా",
}

STEPS = {
    "en": ["Inspect leaves", "Isolate affected area", "Apply organic pesticide", "Control irrigation"],
    "ml": ["ഇലകൾ പരിശോധിക്കുക", "ബാധിത ഭാഗം വേർതിരിക്കുക", "ജൈവ കീടനാശിനി പ്രയോഗിക്കുക", "വെള്ളം നിയന്ത്രിക്കുക"],
    "hi": ["पत्तों की जाँच करें", "संक्रमित भाग अलग करें", "जैविक कीटनाशक लगाएँ", "सिंचाई नियंत्रित करें"],
    "mr": ["पाने तपासा", "संक्रमित भाग वेगळा करा", "सेंद्रिय कीटकनाशक वापरा", "पाणी नियंत्रित करा"],
    "kn": ["ಎಲೆಗಳನ್ನು ಪರಿಶೀಲಿಸಿ", "ಪೀಡಿತ ಭಾಗವನ್ನು ಬೇರ್ಪಡಿಸಿ", "ಸೇಂದ್ರೀಯ ಕೀಟನಾಶಕ ಬಳಸಿ", "ನೀರಾವರಿ ನಿಯಂತ್ರಿಸಿ"],
    "gu": ["પાંદડા તપાસો", "સંક્રમિત ભાગ અલગ કરો", "સજીવ કીટનાશક લગાવો", "સિંચાઈ નિયંત્રિત કરો"],
    "te": ["ఆకులను పరిశీలించండి", "బాధిత భాగాన్ని వేరుచేయండి", "సేంద్రీయ పురుగుమందు వాడండి", "పారుదల నియంత్రించండి"],
}

INTROS = {
    "en": "Here are personalized steps for your crop.",
    "ml": "നിങ്ങളുടെ വിളയ്ക്ക് ആവശ്യമായ സഹായ നിർദ്ദേശങ്ങൾ താഴെ നൽകിയിരിക്കുന്നു.",
    "hi": "आपकी फसल के लिए आवश्यक सलाह नीचे दी गई है।",
    "mr": "तुमच्या पिकासाठी आवश्यक पायऱ्या खाली दिलेल्या आहेत.",
    "kn": "ನಿಮ್ಮ ಬೆಳೆಗಾಗಿ ವೈಯಕ್ತಿಕ ಹಂತಗಳು ಕೆಳಗೆ ನೀಡಲಾಗಿದೆ.",
    "gu": "તમારી પાક માટે વ્યક્તિગત પગલાં નીચે આપેલ છે.",
    "te": "మీ పంట కోసం సూచనలు క్రింద ఉన్నాయి.",
}

# Shown by the client when the advisory service cannot be reached
UNAVAILABLE = {
    "en": {
        "title": "🔧 Service Temporarily Unavailable",
        "text": "We're sorry, but our agricultural advisory service is currently experiencing technical difficulties. "
                "Please try again in a few minutes. If the problem persists, please check back later.",
        "steps": [
            "Wait for 2-3 minutes and try your question again",
            "Check your internet connection",
            "Try refreshing the page",
            "If the issue continues, please visit us again later",
        ],
    },
    "hi": {
        "title": "🔧 सेवा अस्थायी रूप से अनुपलब्ध",
        "text": "अभी हमारी कृषि सलाह सेवा में तकनीकी समस्या है। कृपया कुछ मिनट बाद फिर से कोशिश करें। यदि समस्या बनी रहे तो बाद में आएं।",
        "steps": [
            "2-3 मिनट प्रतीक्षा करें और फिर से प्रयास करें",
            "अपना इंटरनेट कनेक्शन जांचें",
            "पेज को रिफ्रेश करने की कोशिश करें",
            "यदि समस्या जारी रहे तो कृपया बाद में आएं",
        ],
    },
    "ml": {
        "title": "🔧 സേവനം താത്കാലികമായി ലഭ്യമല്ല",
        "text": "ക്ഷമിക്കണം, ഞങ്ങളുടെ കാർഷിക സേവനത്തിൽ ഇപ്പോൾ സാങ്കേതിക പ്രശ്‌നമുണ്ട്. ദയവായി കുറച്ച് മിനിറ്റുകൾക്ക് ശേഷം വീണ്ടും ശ്രമിക്കുക.",
        "steps": [
            "2-3 മിനിറ്റ് കാത്തിരുന്ന് വീണ്ടും ശ്രമിക്കുക",
            "നിങ്ങളുടെ ഇന്റർനെറ്റ് കണക്ഷൻ പരിശോധിക്കുക",
            "പേജ് പുതുക്കാൻ ശ്രമിക്കുക",
            "പ്രശ്‌നം തുടർന്നാൽ പിന്നീട് വരിക",
        ],
    },
    "mr": {
        "title": "🔧 सेवा तात्पुरती उपलब्ध नाही",
        "text": "माफ करा, आमच्या कृषी सल्ला सेवेत सध्या तांत्रिक अडचण आहे. कृपया काही मिनिटांनी पुन्हा प्रयत्न करा.",
        "steps": [
            "2-3 मिनिटे थांबा आणि पुन्हा प्रयत्न करा",
            "तुमचे इंटरनेट कनेक्शन तपासा",
            "पेज रिफ्रेश करून पहा",
            "समस्या कायम राहिल्यास नंतर पुन्हा भेट द्या",
        ],
    },
    "kn": {
        "title": "🔧 ಸೇವೆ ತಾತ್ಕಾಲಿಕವಾಗಿ ಲಭ್ಯವಿಲ್ಲ",
        "text": "ಕ್ಷಮಿಸಿ, ನಮ್ಮ ಕೃಷಿ ಸಲಹಾ ಸೇವೆಯಲ್ಲಿ ಈಗ ತಾಂತ್ರಿಕ ತೊಂದರೆ ಇದೆ. ದಯವಿಟ್ಟು ಕೆಲವು ನಿಮಿಷಗಳ ನಂತರ ಮತ್ತೆ ಪ್ರಯತ್ನಿಸಿ.",
        "steps": [
            "2-3 ನಿಮಿಷ ಕಾಯ್ದು ಮತ್ತೆ ಪ್ರಯತ್ನಿಸಿ",
            "ನಿಮ್ಮ ಇಂಟರ್ನೆಟ್ ಸಂಪರ್ಕವನ್ನು ಪರಿಶೀಲಿಸಿ",
            "ಪುಟವನ್ನು ರಿಫ್ರೆಶ್ ಮಾಡಿ",
            "ಸಮಸ್ಯೆ ಮುಂದುವರಿದರೆ ನಂತರ ಮತ್ತೆ ಬನ್ನಿ",
        ],
    },
    "gu": {
        "title": "🔧 સેવા હાલમાં ઉપલબ્ધ નથી",
        "text": "માફ કરશો, અમારી કૃષિ સલાહ સેવામાં હાલમાં તકનીકી મુશ્કેલી છે. કૃપા કરીને થોડી મિનિટો પછી ફરી પ્રયાસ કરો.",
        "steps": [
            "2-3 મિનિટ રાહ જુઓ અને ફરી પ્રયાસ કરો",
            "તમારું ઇન્ટરનેટ કનેક્શન તપાસો",
            "પેજ રિફ્રેશ કરી જુઓ",
            "સમસ્યા ચાલુ રહે તો પછીથી ફરી મુલાકાત લો",
        ],
    },
    "te": {
        "title": "🔧 సేవ తాత్కాలికంగా అందుబాటులో లేదు",
        "text": "క్షమించండి, మా వ్యవసాయ సలహా సేవలో ప్రస్తుతం సాంకేతిక సమస్య ఉంది. దయచేసి కొన్ని నిమిషాల తర్వాత మళ్లీ ప్రయత్నించండి.",
        "steps": [
            "2-3 నిమిషాలు ఆగి మళ్లీ ప్రయత్నించండి",
            "మీ ఇంటర్నెట్ కనెక్షన్‌ను తనిఖీ చేయండి",
            "పేజీని రిఫ్రెష్ చేయండి",
            "సమస్య కొనసాగితే తర్వాత మళ్లీ రండి",
        ],
    },
}


def default_title(lang: str) -> str:
    return TITLES.get(lang, TITLES[DEFAULT_LANG])


def default_steps(lang: str) -> list[str]:
    return list(STEPS.get(lang, STEPS[DEFAULT_LANG]))


def default_text(lang: str, question: str | None = None) -> str:
    intro = INTROS.get(lang, INTROS[DEFAULT_LANG])
    return f"Question: {question}. {intro}" if question else intro


def build_template_response(lang: str, question: str | None = None) -> AdvisoryResponse:
    """Deterministic advisory from the static tables; ``lang`` is echoed as given."""
    return AdvisoryResponse(
        title=default_title(lang),
        text=default_text(lang, question),
        steps=default_steps(lang),
        lang=lang,
        source="template",
    )


def build_unavailable_response(lang: str) -> AdvisoryResponse:
    message = UNAVAILABLE.get(lang, UNAVAILABLE[DEFAULT_LANG])
    return AdvisoryResponse(
        title=message["title"],
        text=message["text"],
        steps=list(message["steps"]),
        lang=lang,
        source="template",
    )
