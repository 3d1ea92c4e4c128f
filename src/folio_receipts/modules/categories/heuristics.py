"""
Keyword guesses for a line item's category, keyed by the receipt's locale.

Rules are matched against the accent-free, lowercase description in table order;
the first hit wins. ``strong`` marks items that are unambiguous enough to
override a model pick that disagrees.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from folio_receipts.core.text import fold


@dataclass(frozen=True)
class KeywordRule:
    pattern: re.Pattern[str]
    category: str
    strong: bool = False


@dataclass(frozen=True)
class HeuristicSuggestion:
    category: str
    strong: bool
    rule: str


def _r(pattern: str, category: str, strong: bool = False) -> KeywordRule:
    return KeywordRule(re.compile(pattern, re.I), category, strong)


BRAND_RULES: tuple[KeywordRule, ...] = (
    _r(r"\b(coca[\s-]?cola|pepsi|fanta|sprite|seven ?up|schweppes|aquarius)\b", "Soda & Cola", True),
    _r(r"\b(red ?bull|monster energy|burn energy|powerade|gatorade)\b", "Energy Drinks", True),
    _r(r"\b(nescafe|nespresso|dolce gusto|lipton)\b", "Coffee & Tea", True),
    _r(r"\b(heineken|mahou|estrella (damm|galicia)|amstel|san miguel|corona extra|guinness|alhambra)\b", "Alcohol", True),
    _r(r"\b(font vella|bezoya|lanjaron|evian|vittel|solan de cabras)\b", "Water", True),
    _r(r"\b(colgate|sensodyne|nivea|dove|gillette|h&s|pantene)\b", "Personal Care"),
    _r(r"\b(fairy|ariel|mistol|vileda|scottex|colon|dixan)\b", "Household & Cleaning Supplies"),
    _r(r"\b(dodot|huggies)\b", "Baby Items", True),
)

# Brand names that are also ordinary words; tried after the locale tables.
AMBIGUOUS_BRAND_RULES: tuple[KeywordRule, ...] = (
    _r(r"\b(monster|burn)\b", "Energy Drinks"),
    _r(r"\b(estrella|corona)\b", "Alcohol"),
)

ES_RULES: tuple[KeywordRule, ...] = (
    _r(r"\bbolsa\b", "Bags", True),
    _r(r"\bzumo\b|\bnectar\b", "Juice", True),
    _r(r"\bagua\b", "Water", True),
    _r(r"\b(cerveza|vino|cava|sidra|vermut|ginebra|ron|whisky|vodka|tinto|licor)\b", "Alcohol", True),
    _r(r"\b(refresco|cola|gaseosa|tonica|limonada|naranjada)\b", "Soda & Cola", True),
    _r(r"\b(bebida energetica|energetica|isotonica)\b", "Energy Drinks", True),
    _r(r"\b(cafe|capsulas|infusion|manzanilla|te verde|te negro|poleo)\b", "Coffee & Tea"),
    _r(r"\b(bebida de avena|bebida de soja|bebida de almendra|horchata)\b", "Beverages"),
    _r(r"\b(tomate frito|ketchup|mayonesa|mostaza|sal|pimienta|oregano|especias|vinagre|azucar|salsa)\b", "Condiments & Spices"),
    _r(r"\b(atun|sardinas|mejillones|berberechos) (en )?(lata|aceite|escabeche|natural)\b", "Canned Goods"),
    _r(r"\b(conserva|lata|garbanzos cocidos|alubias cocidas|lentejas cocidas)\b", "Canned Goods"),
    _r(r"\b(congelad[oa]s?|helado|pizza)\b", "Frozen Foods"),
    _r(r"\b(leche|yogur|yogures|queso|mantequilla|nata|kefir|cuajada|natillas|batido)\b", "Dairy", True),
    _r(r"\b(huevos?)\b", "Eggs", True),
    _r(r"\b(jamon|chorizo|salchichon|fuet|lomo embuchado|pavo loncha|mortadela|fiambre|salami)\b", "Deli"),
    _r(r"\b(pollo|ternera|cerdo|cordero|hamburguesa|salchicha|carne|pechuga|muslo|costilla|filete)\b", "Meat"),
    _r(r"\b(salmon|merluza|atun|bacalao|gambas|langostinos|calamar|sepia|dorada|lubina|pescado|mejillon)\b", "Fish & Seafood"),
    _r(r"\b(tofu|tempeh|seitan|soja texturizada|hummus)\b", "Plant-Based Protein"),
    _r(r"\b(pan|barra|baguette|chapata|croissant|magdalena|bolleria|tostadas|pan de molde)\b", "Bread & Bakery"),
    _r(r"\b(arroz|pasta|macarrones|espagueti|spaghetti|fideos|cereales|avena|muesli|tallarines)\b", "Pasta, Rice & Cereal"),
    _r(r"\b(patatas fritas|snack|nachos|palomitas|galletas|chocolate|frutos secos|almendras|cacahuetes|pipas)\b", "Snacks"),
    _r(r"\b(harina|levadura|cacao en polvo|bicarbonato)\b", "Baking"),
    _r(r"\b(aceite|oliva|girasol|margarina)\b", "Oils & Fats"),
    _r(r"\b(platano|platanos|manzana|pera|naranja|mandarina|fresa|fresas|uva|uvas|kiwi|melon|sandia|limon|aguacate|piña|pina|melocoton|frutas?)\b", "Fruits"),
    _r(r"\b(tomate|lechuga|cebolla|patata|patatas|zanahoria|pimiento|pepino|calabacin|brocoli|espinacas|ajo|berenjena|judias|verduras?|ensalada)\b", "Vegetables"),
    _r(r"\b(detergente|lejia|suavizante|friegasuelos|lavavajillas|estropajo|papel higienico|servilletas|papel de cocina|bolsas basura|limpiador)\b", "Household & Cleaning Supplies", True),
    _r(r"\b(champu|gel|desodorante|dentifrico|pasta de dientes|cepillo dental|colonia|crema facial|compresas|maquinilla)\b", "Personal Care"),
    _r(r"\b(panales|toallitas|potito|papilla)\b", "Baby Items"),
    _r(r"\b(pienso|comida (para )?(perro|gato)|arena gato|snack perro)\b", "Pet Care", True),
    _r(r"\b(paracetamol|ibuprofeno|tiritas|farmacia|vitaminas)\b", "Health Care"),
)

EN_RULES: tuple[KeywordRule, ...] = (
    _r(r"\b(carrier )?bags?\b", "Bags", True),
    _r(r"\bjuice\b|\bsmoothie\b", "Juice", True),
    _r(r"\b(still|sparkling|mineral)? ?water\b", "Water", True),
    _r(r"\b(beer|lager|ale|cider|wine|prosecco|gin|rum|whisky|whiskey|vodka|spirits)\b", "Alcohol", True),
    _r(r"\b(soda|cola|lemonade|tonic|fizzy)\b", "Soda & Cola", True),
    _r(r"\b(energy drink|sports drink)\b", "Energy Drinks", True),
    _r(r"\b(coffee|tea bags|teabags|espresso|green tea|herbal tea)\b", "Coffee & Tea"),
    _r(r"\b(ketchup|mayo|mayonnaise|mustard|salt|pepper|spices?|vinegar|sugar|sauce)\b", "Condiments & Spices"),
    _r(r"\b(tinned|canned|baked beans)\b", "Canned Goods"),
    _r(r"\b(frozen|ice cream|pizza)\b", "Frozen Foods"),
    _r(r"\b(milk|yog(h)?urt|cheese|butter|cream|kefir)\b", "Dairy", True),
    _r(r"\beggs?\b", "Eggs", True),
    _r(r"\b(ham|salami|chorizo|pastrami|cold cuts|deli)\b", "Deli"),
    _r(r"\b(chicken|beef|pork|lamb|mince|sausages?|bacon|steak|burger|turkey)\b", "Meat"),
    _r(r"\b(salmon|cod|tuna|prawns|shrimp|haddock|fish|seafood|mackerel)\b", "Fish & Seafood"),
    _r(r"\b(tofu|tempeh|seitan|hummus)\b", "Plant-Based Protein"),
    _r(r"\b(bread|loaf|baguette|bagels?|croissants?|muffins?|buns?|rolls)\b", "Bread & Bakery"),
    _r(r"\b(rice|pasta|spaghetti|noodles|cereal|oats|granola|porridge)\b", "Pasta, Rice & Cereal"),
    _r(r"\b(crisps|chips|popcorn|pretzels|crackers|biscuits|cookies|chocolate|nuts)\b", "Snacks"),
    _r(r"\b(flour|yeast|baking powder|cocoa)\b", "Baking"),
    _r(r"\b(olive oil|sunflower oil|vegetable oil|oil|margarine)\b", "Oils & Fats"),
    _r(r"\b(bananas?|apples?|pears?|oranges?|grapes|strawberries|berries|lemons?|avocados?|kiwi|melon|fruit)\b", "Fruits"),
    _r(r"\b(tomato(es)?|lettuce|onions?|potato(es)?|carrots?|peppers?|cucumber|broccoli|spinach|garlic|salad|veg|vegetables?)\b", "Vegetables"),
    _r(r"\b(detergent|bleach|washing up|dishwasher|toilet (roll|paper)|kitchen roll|bin bags|cleaner|fabric softener)\b", "Household & Cleaning Supplies", True),
    _r(r"\b(shampoo|conditioner|shower gel|deodorant|toothpaste|toothbrush|razor|moisturi[sz]er)\b", "Personal Care"),
    _r(r"\b(nappies|diapers|baby wipes|baby food)\b", "Baby Items"),
    _r(r"\b(dog food|cat food|cat litter|pet)\b", "Pet Care", True),
    _r(r"\b(paracetamol|ibuprofen|plasters|vitamins|pharmacy)\b", "Health Care"),
)

FR_RULES: tuple[KeywordRule, ...] = (
    _r(r"\bsac\b", "Bags", True),
    _r(r"\bjus\b", "Juice", True),
    _r(r"\beau\b", "Water", True),
    _r(r"\b(biere|vin|champagne|cidre|rhum|whisky|vodka|pastis)\b", "Alcohol", True),
    _r(r"\b(soda|cola|limonade)\b", "Soda & Cola", True),
    _r(r"\b(cafe|the|tisane|infusion)\b", "Coffee & Tea"),
    _r(r"\b(lait|yaourt|fromage|beurre|creme)\b", "Dairy", True),
    _r(r"\boeufs?\b", "Eggs", True),
    _r(r"\b(jambon|saucisson|charcuterie)\b", "Deli"),
    _r(r"\b(poulet|boeuf|porc|agneau|viande|steak|saucisses?)\b", "Meat"),
    _r(r"\b(saumon|cabillaud|thon|crevettes|poisson)\b", "Fish & Seafood"),
    _r(r"\b(pain|baguette|croissant|brioche)\b", "Bread & Bakery"),
    _r(r"\b(riz|pates|cereales|avoine)\b", "Pasta, Rice & Cereal"),
    _r(r"\b(surgele|glace)\b", "Frozen Foods"),
    _r(r"\b(huile|margarine)\b", "Oils & Fats"),
    _r(r"\b(pommes?|bananes?|oranges?|fraises|raisin|citron|fruits?)\b", "Fruits"),
    _r(r"\b(tomates?|salade|oignons?|pommes de terre|carottes?|legumes?)\b", "Vegetables"),
    _r(r"\b(lessive|javel|essuie[- ]tout|papier toilette|nettoyant)\b", "Household & Cleaning Supplies", True),
    _r(r"\b(shampooing|gel douche|dentifrice|deodorant)\b", "Personal Care"),
)

CA_RULES: tuple[KeywordRule, ...] = (
    _r(r"\bbossa\b", "Bags", True),
    _r(r"\bsuc\b", "Juice", True),
    _r(r"\baigua\b", "Water", True),
    _r(r"\b(cervesa|vi|cava)\b", "Alcohol", True),
    _r(r"\b(llet|iogurt|formatge|mantega)\b", "Dairy", True),
    _r(r"\bous?\b", "Eggs", True),
    _r(r"\b(pernil|embotit|fuet)\b", "Deli"),
    _r(r"\b(pollastre|vedella|porc|carn)\b", "Meat"),
    _r(r"\b(peix|salmo|lluc|gambes)\b", "Fish & Seafood"),
    _r(r"\b(pa|barra)\b", "Bread & Bakery"),
    _r(r"\b(arros|pasta|cereals)\b", "Pasta, Rice & Cereal"),
    _r(r"\b(oli)\b", "Oils & Fats"),
    _r(r"\b(poma|platan|taronja|maduixes|fruita)\b", "Fruits"),
    _r(r"\b(tomaquet|enciam|ceba|patata|pastanaga|verdura)\b", "Vegetables"),
)

PT_RULES: tuple[KeywordRule, ...] = (
    _r(r"\bsaco\b", "Bags", True),
    _r(r"\bsumo\b|\bsuco\b", "Juice", True),
    _r(r"\bagua\b", "Water", True),
    _r(r"\b(cerveja|vinho)\b", "Alcohol", True),
    _r(r"\b(leite|iogurte|queijo|manteiga)\b", "Dairy", True),
    _r(r"\bovos?\b", "Eggs", True),
    _r(r"\b(frango|carne|porco|vaca)\b", "Meat"),
    _r(r"\b(peixe|bacalhau|salmao)\b", "Fish & Seafood"),
    _r(r"\b(pao|broa)\b", "Bread & Bakery"),
    _r(r"\b(arroz|massa)\b", "Pasta, Rice & Cereal"),
    _r(r"\b(banana|maca|laranja|fruta)\b", "Fruits"),
    _r(r"\b(tomate|alface|cebola|batata|cenoura|legumes)\b", "Vegetables"),
)

IT_RULES: tuple[KeywordRule, ...] = (
    _r(r"\bsacchetto\b|\bshopper\b", "Bags", True),
    _r(r"\bsucco\b", "Juice", True),
    _r(r"\bacqua\b", "Water", True),
    _r(r"\b(birra|vino|prosecco)\b", "Alcohol", True),
    _r(r"\b(latte|yogurt|formaggio|mozzarella|burro)\b", "Dairy", True),
    _r(r"\buova\b", "Eggs", True),
    _r(r"\b(prosciutto|salame|mortadella)\b", "Deli"),
    _r(r"\b(pollo|manzo|maiale|carne)\b", "Meat"),
    _r(r"\b(pesce|tonno|salmone)\b", "Fish & Seafood"),
    _r(r"\b(pane|cornetto)\b", "Bread & Bakery"),
    _r(r"\b(pasta|riso|spaghetti|penne)\b", "Pasta, Rice & Cereal"),
    _r(r"\b(mele|banane|arance|frutta)\b", "Fruits"),
    _r(r"\b(pomodori|insalata|cipolle|patate|carote|verdura)\b", "Vegetables"),
)

DE_RULES: tuple[KeywordRule, ...] = (
    _r(r"\b(tragetasche|tute|pfand)\b", "Bags"),
    _r(r"\bsaft\b", "Juice", True),
    _r(r"\bwasser\b", "Water", True),
    _r(r"\b(bier|wein|sekt)\b", "Alcohol", True),
    _r(r"\b(milch|joghurt|kase|butter|quark|sahne)\b", "Dairy", True),
    _r(r"\beier\b", "Eggs", True),
    _r(r"\b(schinken|salami|wurst|aufschnitt)\b", "Deli"),
    _r(r"\b(hahnchen|rind|schwein|hackfleisch|fleisch)\b", "Meat"),
    _r(r"\b(fisch|lachs|thunfisch)\b", "Fish & Seafood"),
    _r(r"\b(brot|brotchen|brezel)\b", "Bread & Bakery"),
    _r(r"\b(nudeln|reis|musli|haferflocken)\b", "Pasta, Rice & Cereal"),
    _r(r"\b(apfel|bananen|orangen|obst)\b", "Fruits"),
    _r(r"\b(tomaten|salat|zwiebeln|kartoffeln|karotten|gemuse)\b", "Vegetables"),
)

NL_RULES: tuple[KeywordRule, ...] = (
    _r(r"\b(tas|draagtas)\b", "Bags", True),
    _r(r"\bsap\b", "Juice", True),
    _r(r"\bwater\b", "Water", True),
    _r(r"\b(bier|wijn)\b", "Alcohol", True),
    _r(r"\b(melk|yoghurt|kaas|boter|vla)\b", "Dairy", True),
    _r(r"\beieren\b", "Eggs", True),
    _r(r"\b(ham|salami|vleeswaren)\b", "Deli"),
    _r(r"\b(kip|rund|varken|gehakt|vlees)\b", "Meat"),
    _r(r"\b(vis|zalm|tonijn)\b", "Fish & Seafood"),
    _r(r"\b(brood|bolletjes|croissant)\b", "Bread & Bakery"),
    _r(r"\b(rijst|pasta|muesli)\b", "Pasta, Rice & Cereal"),
    _r(r"\b(appels|bananen|sinaasappels|fruit)\b", "Fruits"),
    _r(r"\b(tomaten|sla|uien|aardappelen|wortels|groente)\b", "Vegetables"),
)

LOCALE_RULES: dict[str, tuple[KeywordRule, ...]] = {
    "es": ES_RULES,
    "en": EN_RULES,
    "fr": FR_RULES,
    "pt": PT_RULES,
    "it": IT_RULES,
    "de": DE_RULES,
    "nl": NL_RULES,
    "ca": CA_RULES,
}


def rules_for_locale(locale: str | None) -> list[KeywordRule]:
    table = LOCALE_RULES.get(locale or "")
    if table is None:
        out: list[KeywordRule] = list(BRAND_RULES)
        for rules in LOCALE_RULES.values():
            out.extend(rules)
        out.extend(AMBIGUOUS_BRAND_RULES)
        return out
    return [*BRAND_RULES, *table, *AMBIGUOUS_BRAND_RULES]


def suggest_category(
    description: str, *, locale: str | None, category_names_by_lower: dict[str, str]
) -> HeuristicSuggestion | None:
    """Best keyword guess for ``description`` restricted to the user's catalog."""
    text = fold(description)
    if not text.strip():
        return None
    for rule in rules_for_locale(locale):
        if not rule.pattern.search(text):
            continue
        name = category_names_by_lower.get(rule.category.lower())
        if name is None:
            continue
        return HeuristicSuggestion(category=name, strong=rule.strong, rule=rule.pattern.pattern)
    return None
