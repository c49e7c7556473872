"""
nutrilens package:
- vision: OpenAI vision call and response text extraction
- utils: food guess parsing from model text
- nutrition: Nutritionix lookup and placeholder macros
- services: photo -> nutrition payload pipeline
- main: FastAPI app
"""
