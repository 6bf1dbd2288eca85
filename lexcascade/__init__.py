"""
lexcascade - Extração de leis e decretos do Benin com cascata de qualidade.

Fluxo:

    PDF -> texto nativo | OCR -> baseline programático
        -> [correção OCR IA] -> [correção JSON IA] -> [reextração visão]
        -> payload JSON aceito (ou CascadeExhaustedError)

Cada estágio de IA só roda quando o score do estágio anterior fica abaixo
do limiar configurado.
"""

__version__ = "0.1.0"
