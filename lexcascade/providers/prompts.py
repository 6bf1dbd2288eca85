"""
Prompts das transformações IA.

Os documentos são textos normativos da República do Benin, em francês;
os prompts também são em francês. Templates usam str.format, por isso
chaves literais do JSON aparecem duplicadas.
"""

SYSTEM_PROMPT = """\
Tu es un assistant spécialisé dans les textes juridiques de la République du Bénin \
(lois et décrets). Tu ne dois JAMAIS inventer de contenu: tu corriges ou structures \
uniquement ce qui est présent dans la source."""

OCR_CORRECTION_PROMPT = """\
Corrige les erreurs de reconnaissance optique (OCR) dans l'extrait ci-dessous.

Règles:
1. Corrige uniquement les caractères mal reconnus (ex: "Articlc 1e" -> "Article 1er", "préscnte" -> "présente").
2. Ne reformule pas, ne résume pas, n'ajoute aucun texte.
3. Conserve les retours à la ligne et la numérotation des articles.
4. Réponds UNIQUEMENT avec le texte corrigé, sans commentaire.

Extrait ({index}/{total}):
{text}"""

PAYLOAD_FORMAT = """\
{{
  "title": "LOI N° ... portant ...",
  "promulgationDate": "AAAA-MM-JJ",
  "promulgationCity": "Cotonou",
  "articles": [{{"index": 1, "content": "Article 1er : ..."}}],
  "signatories": [{{"name": "...", "role": "...", "order": 1}}]
}}"""

OCR_TO_JSON_PROMPT = """\
Extrais la structure du texte juridique ci-dessous.

Retourne un JSON au format:
""" + PAYLOAD_FORMAT + """

Règles:
- "index" est le numéro de l'article ("1er" ou "premier" = 1).
- "content" reprend le texte intégral de l'article, sans le modifier.
- Omets les champs absents du texte. N'invente rien.
- Réponds UNIQUEMENT avec le JSON.

Texte:
{text}"""

JSON_CORRECTION_PROMPT = """\
Voici l'extraction structurée (JSON) d'un texte juridique, produite automatiquement.

Corrige-la:
- numérotation des articles (séquence 1, 2, 3 ... sans doublon),
- fautes d'OCR évidentes dans "content", "title" et les signataires,
- date de promulgation au format AAAA-MM-JJ.
Ne supprime aucun article et n'ajoute aucun contenu absent.
Conserve le même format et réponds UNIQUEMENT avec le JSON corrigé.

JSON ({index}/{total}):
{payload}"""

PDF_TO_JSON_PROMPT = """\
Les images jointes sont les pages {first_page} à {last_page} (sur {page_count}) d'un texte \
juridique béninois.

Extrais le document au format JSON:
""" + PAYLOAD_FORMAT + """

Règles:
- Lis le texte directement sur les images.
- Si un article commence sur une page précédente, inclus seulement la partie visible.
- Omets les champs absents de ces pages. N'invente rien.
- Réponds UNIQUEMENT avec le JSON."""
