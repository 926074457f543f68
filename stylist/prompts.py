"""Prompt templates sent with the images."""

# Used when the user painted a mask over the product image.
# Images are sent in order: model, product, mask.
def masked_prompt(instruction: str) -> str:
    return f"""You are an expert virtual fashion stylist specializing in photorealistic apparel try-on. Your task is to dress the model from the first image with the clothing item from the second image.

You are provided with:
1. An image of the target model.
2. An image of the product (a piece of clothing, potentially on another model).
3. A black and white mask. The white area in the mask precisely isolates the clothing item you must use from the second image.

Your goal is to generate a new image where the target model is wearing the isolated clothing item.

**Crucial Instructions:**
- **Fit and Realism:** The clothing must realistically fit the target model's body, conforming to their specific pose, body shape, and the lighting conditions of their original photo.
- **Replace, Don't Overlay:** The new clothing should replace any existing clothing worn by the target model in the corresponding area.
- **Isolate the Product:** You MUST ONLY use the clothing item from the white area of the mask. Completely ignore the original model, background, or any other elements from the product image (the black area of the mask).
- **Follow User Command:** Adhere to the user's specific styling instruction.

User's instruction: {instruction}"""


def unmasked_prompt(instruction: str) -> str:
    return (
        "You are an expert fashion stylist. Your task is to realistically place the product "
        "from the second image onto the model in the first image. The new image should look "
        "photorealistic. If the product is clothing, the model should be wearing it in a way "
        "that fits their body and pose. Follow the user's styling instruction. "
        f"User's instruction: {instruction}"
    )


def build_prompt(instruction: str, has_mask: bool) -> str:
    if has_mask:
        return masked_prompt(instruction)
    return unmasked_prompt(instruction)
