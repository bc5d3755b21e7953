"""Prohibited content: monitored pharmacy and supplement product names.

Shopping platforms review listings that name these products (unapproved
weight-loss, sexual-enhancement and anabolic supplements).  Entries are
matched case-insensitively as whole phrases in the title and description.
"""

import re

from feedaudit.pipeline.schemas import ErrorResult, FeedItem
from feedaudit.pipeline.checkers.base import finding
from feedaudit.pipeline.text_normalizer import get_context

MONITORED_PHARMACY_WORDS = [
    "360Dreams", "4-AD", "72 Hours", "Afterburn", "Alteril Fast Acting Softgels", "Amour Again",
    "Amour for him", "APL", "Apple Slim by Apple Slim", "ArimaDex", "Arom-X", "Arom-X UTT",
    "Arom-XL", "Arousin", "Body Burn 1000", "Brain Booster", "C20 Epilepsy Formula",
    "C55 Neuro Calming Formula", "Cannibal Ferox Amped", "Celprotect I",
    "Charge Extreme Energy Booster", "Chlamydia Venereal Mix Formula", "Clyamax", "Cognition",
    "Comatose", "Core Burn", "DaiDaiHuaJiaoNang", "Deliverance From Chlamydia Kit",
    "Deliverance From Gonorrhea", "Deliverance From Herpes Kit", "Depth Charge",
    "Destroy the Enemy", "Diabetes Brittle Essentials-Kit", "Diabetes Insipidus Essentials-Kit",
    "DMAAented Anabolic Infusion", "DNPX", "DNP XII", "Dream Body Slimming Capsule", "Dr. Jekyll",
    "D-Termination 1200", "Energy Sparx", "ENGN", "Ephedrex", "Epilepsy Essentials-Kit", "Erexa",
    "Erexxx", "Erousa", "Finally On Demand", "Fire Bombs", "Freedom from Diabetes Kit",
    "Freedom from Epilepsy Formula (Epilepsy 1M)", "Freedom from Herpes Kit",
    "Fruit Plant Lossing Fat Capsule", "fruta planta", "Fully Loaded", "Get Smart",
    "Gonorrhea Formula", "Growth", "Hawthorn", "Health Slimming Coffee", "Herbal Ambien",
    "Herbal Viagra", "Herbal Xanax", "Herpes Essentials-Kit", "Herpes Optimal-Kit", "HG4 Up",
    "Hyde V2", "Inferno", "I-Focus", "Ja Dera 100% Natural Weight Loss Supplement", "Jack3d", "KH3",
    "Kratom", "Lean Body For Her", "Lean Body Hi-Energy Fat Burner", "Leisure 18 Slimming Coffee",
    "Libiplus", "Lishou", "Lose Weight Coffee", "Love Fuel", "Lumonol", "Magic Slim Tea",
    "Magic Slim Weight Reduction Capsule", "Mangodrin", "MegaWatt HD", "Mr. Hyde", "Mr. Hyde RTD",
    "Muscle Mass", "Neuroflexyn", "NeuroPhen", "Neuropump", "Neuro Edge", "Neuro Lean", "Nirvana",
    "Nitramine", "Noopep", "Noxipro Chrome", "Nox-Pump", "N-nicotinoyl-GABA", "OxyElite Pro",
    "P57 Hoodia", "Pai You Guo Slim Tea", "Pelargonium", "Phentabz",
    "PhentraBurn Slimming Capsules", "PhenUltra", "Picamilon", "Picamilon X.Treme", "Picamilon-150",
    "Picamilon-50", "Pikamilon", "Pikatropin", "Pre-Diabetes Essentials Kit", "Profiderall",
    "Pump Igniter", "Pycamilon", "Pyroxamine", "Que She", "Rainbow Rocket", "Red Hot Sex",
    "Riptek V2", "Rockhard", "Sheng Yuan Fang", "Shock'd", "Sleep/GH", "SleepWell (Herbal Xanax)",
    "Slender Slim 11", "Slim Forte Double Power Slimming Capsules", "Slim Forte Slimming Capsules",
    "Slim Forte Slimming Coffee", "Slim Xtreme Herbal Slimming Capsule",
    "Slimming Beauty Bitter Orange Slimming Capsules", "Slimming Factor Capsule",
    "Spartan Shredding", "Stamin It", "Stamina-Rx", "Staminil", "Stimuloid II", "Straight Up",
    "strongid", "Super Charge! Xtreme", "Super Charge! Xtreme 4.0", "Super Charge! Xtreme N.O.",
    "Super Lean 450", "Tacktol", "Tengda", "Testek", "Topviril", "Turbo Shred", "Turbo 2.0",
    "Ultimate Punch-ed Out", "Vanish", "Vaxitrol", "Vierect", "Vitamin B 17", "Whatzup",
    "Xtremexcite", "Zenerect", "Zicam Cold Remedy Swabs, Kids Size", "2 day diet",
    "2x powerful slimming", "3 day diet", "3x slimming power", "7 day herbal slim", "7 days diet",
    "7 diet", "actra sx", "Alcohol Free hCG Weight Loss Formula", "body shaping", "body slimming",
    "botanical slimming", "cefurax", "celerite slimming capsules", "fasting diet",
    "hCG Diet Drops Weight Loss Formula", "HCG Diet Homeopathic Drops",
    "hCG Diet Pellets Weight Loss Formula", "HCG Extra Weight Loss Homeopathic Drops",
    "HCG Fusion 30", "HCG Fusion 43", "HCG Platinum", "HCG Platinum X-14", "HCG Platinum X-30",
    "Healthily Slim", "herbal xenicol", "Homeopathic HCG", "Homeopathic Original HCG",
    "imelda perfect slim", "libidus", "lida daidaihua", "lipostabil", "meizitang", "nasutra",
    "palmitin", "pau d arco bark", "perfect slim", "pilex", "reduce weight", "slim 30", "slim up",
    "slimming formula", "solo slim extra strength", "stamina rx", "starcaps", "super fat burner",
    "venom hyperdrive 3.0", "viapro", "vitalex", "zhen de shou", "zicam cold remedy nasal gel",
    "acceleration", "adrenalean", "allerclear", "animal cuts", "anorex", "asia black", "biolean",
    "black beauty", "black ice", "black knight", "black widow", "blue slim", "breathe easy",
    "burn max", "china white", "diet burn", "Dyma-Burn", "Dyma-Burn Xtreme", "Dymetadrine Xtreme",
    "ECA Fatburner", "eca xtreme", "electricity", "energel", "eph 100", "eph 25", "ephedra",
    "ephedra sinica", "exn", "extreme power plus", "fastin", "fire starter", "green e",
    "green stinger", "Herbalife Original Green", "high octane", "hot body", "Hydroxa-7",
    "Hydroxadrine", "hydroxy ripped", "Hydroxy Stac", "hydroxycut with ephedra", "Hydroylean",
    "Hydroymax", "isxperia select", "jacked up", "jetfire", "kaizen ephedrine hcl", "kwik burn",
    "lipotherm", "lipozol", "ma huang ephedra", "Mahuang Herbal Ephedra", "man power", "MataboGold",
    "Maxadrine", "md6", "mdd", "meta burn", "Metab-O-Lite", "Metabadrine", "metabolife",
    "Metabolife EZ Tabs", "metabolite", "Metabosafe", "Metabothin", "mini trim",
    "Original Metabolife", "over drive", "pe min kan wan", "rage", "real deal", "red devils",
    "Refresh Green", "ripped force", "stimerex es", "Super Caps", "Super Ephedra Extreme",
    "Superdrine", "Superdrine RX-10", "thermo speed", "thermo trim", "thermoburn", "Thermogen II",
    "Thermojetics Original Green", "thermolean", "trim fast", "trim s", "turbo charge", "udep",
    "ultimate orange", "ultracuts", "venom hyperdrive", "whacked out", "x lean", "xenadrine rfa 1",
    "yellow bullet", "yellow cross", "yellow haze", "yellow jacket", "yellow power",
    "yellow scorpion", "yellow subs", "yellow swarm", "3 ad", "4Ever Fit D-Drol", "6 oxo",
    "Advanced Muscle Science Dienedrone", "Advanced Muscle Science Liquidrone",
    "Anabolic Formulation M1, 4AD", "Anabolic Formulations 1, 4 AD", "Anabolic Xtreme 3-AD",
    "Anabolic Xtreme Hyperdrol X2", "androstenedione", "BCS Labs Testra-Flex",
    "Competitive Edge Labs M-Drol", "Competitive Edge Labs P-Plex", "Competitive Edge Labs X-Tren",
    "d drol", "dymethazine", "epi tren", "ergopharm 6 oxo", "finaflex 550 xd", "finaflex ripped",
    "forged extreme mass", "Gaspari Halodrol Liquigels", "gaspari novedex xt", "h drol",
    "Halodrol Liquidgels", "hmg xtreme", "Hyperdrol X2", "iForce 1,4 AD BOLD 200",
    "iForce Dymethazine", "iForce MethaDROL", "Kilo Sports Massdrol", "Kilo Sports Phera-Mass",
    "Kilo Sports Trenadrol", "Liquidrone UTT", "m drol", "M-Drol", "m1", "M1, 4AD", "madol",
    "Magna Drol", "mass tabs", "mass xtreme", "massdrol", "Mastavol", "mdit", "methadrol",
    "MethAnstance", "methastadrol", "Methyldrostanolone", "monster caps", "myogenix spawn",
    "Nasty Mass", "Nutra Coastal D-Stianozol", "Nutra Coastal H-Drol", "Nutra Coastal MDIT",
    "Nutra Coastal S-Drol", "Nutra Coastal Trena", "ON Cycle II Hardcore", "Oxodrol Pro", "p plex",
    "P-Plex", "Performance Anabolics Methastadrol", "Performance Anabolics Tri-Methyl X",
    "Phera-Mass", "Pheravol-V", "Purus Labs E-pol Inslinsified", "Purus Labs Nasty Mass",
    "Rage RV2", "Rage RV3", "Rage RV4", "Rage RV5", "rapid release",
    "Redefine Nutrition Finaflex 550-XD", "Redefine Nutrition Finaflex Ripped", "revamp", "revenge",
    "Ripped Tabs", "rv2", "rv3", "rv4", "rv5", "s drol", "spawn", "superdrol", "sus 500",
    "Transform Supplements Forged Extreme Mass", "Transform Supplements Forged Lean Mass", "tren",
    "tren 250", "tren xtreme", "trena", "trenadrol", "tri methyl x", "turinabol", "x tren",
]

_CANONICAL = {w.lower(): w for w in MONITORED_PHARMACY_WORDS}
# Longest first so "Mr. Hyde RTD" wins over "Mr. Hyde"
MONITORED_WORDS_RE = re.compile(
    r"(?<!\w)(?:"
    + "|".join(re.escape(w) for w in sorted(_CANONICAL.values(), key=len, reverse=True))
    + r")(?!\w)",
    re.IGNORECASE,
)

MAX_EXAMPLES = 3


def monitored_word_hits(text: str | None) -> list[tuple[str, re.Match]]:
    """(vocabulary entry, match) per distinct monitored word, in text order."""
    if not text:
        return []
    hits = []
    seen = set()
    for m in MONITORED_WORDS_RE.finditer(text):
        key = m.group(0).lower()
        if key in seen:
            continue
        seen.add(key)
        hits.append((_CANONICAL[key], m))
    return hits


def check_monitored_pharmacy_words(item: FeedItem) -> ErrorResult | None:
    found = []
    for field_name in ("title", "description"):
        text = getattr(item, field_name)
        for word, m in monitored_word_hits(text):
            found.append((word, field_name, get_context(text, m.start(), len(m.group(0)))))
    if not found:
        return None
    examples = [
        f'"{context}" (found: "{word}" in {field_name})'
        for word, field_name, context in found[:MAX_EXAMPLES]
    ]
    return finding(
        item, "Monitored Pharmacy Words",
        f"Found {len(found)} monitored word(s): {', '.join(word for word, _, _ in found)}",
        found[0][1], "; ".join(examples),
    )
