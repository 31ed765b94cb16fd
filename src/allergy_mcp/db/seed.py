"""Reference allergy records loaded into an empty database."""

from typing import Any, Dict, List

SEED_ALLERGIES: List[Dict[str, Any]] = [
    {
        "id": "alg-peanut",
        "name": "Peanut",
        "severity": "severe",
        "symptoms": ["hives", "swelling", "wheezing", "abdominal pain", "anaphylaxis"],
        "triggers": ["peanuts", "peanut butter", "peanut oil", "satay sauce"],
        "notes": "One of the most common causes of food-induced anaphylaxis.",
    },
    {
        "id": "alg-tree-nut",
        "name": "Tree Nut",
        "severity": "severe",
        "symptoms": ["hives", "itching", "swelling", "nausea", "anaphylaxis"],
        "triggers": ["almonds", "cashews", "walnuts", "pecans", "pesto"],
        "notes": "Cross-reactivity between different tree nuts is common.",
    },
    {
        "id": "alg-shellfish",
        "name": "Shellfish",
        "severity": "severe",
        "symptoms": ["hives", "swelling", "vomiting", "wheezing", "dizziness"],
        "triggers": ["shrimp", "crab", "lobster", "prawns"],
        "notes": "Often develops in adulthood and tends to be lifelong.",
    },
    {
        "id": "alg-fish",
        "name": "Fish",
        "severity": "moderate",
        "symptoms": ["hives", "nausea", "vomiting", "headache", "runny nose"],
        "triggers": ["salmon", "tuna", "cod", "fish sauce"],
        "notes": "",
    },
    {
        "id": "alg-milk",
        "name": "Milk",
        "severity": "moderate",
        "symptoms": ["hives", "wheezing", "vomiting", "diarrhea", "abdominal pain"],
        "triggers": ["milk", "cheese", "butter", "yogurt", "whey"],
        "notes": "Distinct from lactose intolerance, which is not an immune reaction.",
    },
    {
        "id": "alg-egg",
        "name": "Egg",
        "severity": "moderate",
        "symptoms": ["skin rash", "hives", "nasal congestion", "vomiting"],
        "triggers": ["eggs", "mayonnaise", "meringue", "custard"],
        "notes": "",
    },
    {
        "id": "alg-wheat",
        "name": "Wheat",
        "severity": "moderate",
        "symptoms": ["swelling", "itching", "headache", "nasal congestion", "diarrhea"],
        "triggers": ["bread", "pasta", "couscous", "semolina"],
        "notes": "Not the same condition as celiac disease.",
    },
    {
        "id": "alg-soy",
        "name": "Soy",
        "severity": "mild",
        "symptoms": ["tingling in the mouth", "hives", "itching", "runny nose"],
        "triggers": ["soy sauce", "tofu", "edamame", "miso"],
        "notes": "",
    },
    {
        "id": "alg-sesame",
        "name": "Sesame",
        "severity": "severe",
        "symptoms": ["hives", "coughing", "wheezing", "swelling", "anaphylaxis"],
        "triggers": ["sesame seeds", "tahini", "hummus", "sesame oil"],
        "notes": "",
    },
    {
        "id": "alg-pollen",
        "name": "Pollen",
        "severity": "mild",
        "symptoms": ["sneezing", "itchy eyes", "runny nose", "nasal congestion"],
        "triggers": ["grass", "ragweed", "birch trees"],
        "notes": "Seasonal; may cross-react with some raw fruits.",
    },
]
