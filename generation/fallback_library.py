"""
Curated fallback questions, keyed by canonical subject.

Hand-authored and checked; used when every provider fails for a slot.
Keep stems distinct in their first 40 characters so fingerprints never
collide inside one subject.
"""

FALLBACK_LIBRARY = {
    "math": [
        {
            "text": "A shop raises a price by 20% and later cuts the new price by 20%. How does the final price compare with the original?",
            "options": ["It is 4% lower", "It is the same", "It is 4% higher", "It is 2% lower"],
            "correct": "A",
            "explanation": "1.20 × 0.80 = 0.96, so the final price is 96% of the original, i.e. 4% lower. Equal percentage changes do not cancel because the second one acts on a larger base.",
        },
        {
            "text": "For which value of $k$ does $x^2 - 6x + k = 0$ have exactly one real root?",
            "options": ["$k = 6$", "$k = 9$", "$k = -9$", "$k = 36$"],
            "correct": "B",
            "explanation": "One repeated root requires the discriminant $b^2 - 4ac = 36 - 4k$ to be zero, giving $k = 9$.",
        },
        {
            "text": "The sum of the interior angles of a regular polygon is 1440°. How many sides does it have?",
            "options": ["8", "9", "10", "12"],
            "correct": "C",
            "explanation": "Interior angle sum is $(n - 2) × 180°$. Solving $(n - 2) × 180 = 1440$ gives $n - 2 = 8$, so $n = 10$.",
        },
        {
            "text": "A student claims $\\log(a + b) = \\log a + \\log b$. Which identity is actually correct?",
            "options": [
                "$\\log(ab) = \\log a + \\log b$",
                "$\\log(a + b) = \\log a \\cdot \\log b$",
                "$\\log(a - b) = \\log a - \\log b$",
                "$\\log(a^b) = b + \\log a$",
            ],
            "correct": "A",
            "explanation": "The product rule says the logarithm of a product is the sum of the logarithms. There is no simple rule for the logarithm of a sum.",
        },
        {
            "text": "Two fair dice are rolled. What is the probability that the total is 8?",
            "options": ["$\\frac{1}{6}$", "$\\frac{5}{36}$", "$\\frac{1}{9}$", "$\\frac{7}{36}$"],
            "correct": "B",
            "explanation": "The pairs (2,6), (3,5), (4,4), (5,3), (6,2) give 8: five outcomes out of 36.",
        },
    ],
    "physics": [
        {
            "text": "A ball is thrown straight up. At the highest point of its flight, which statement is true?",
            "options": [
                "Velocity and acceleration are both zero",
                "Velocity is zero and acceleration is $9.8\\,m/s^2$ downward",
                "Velocity is maximum and acceleration is zero",
                "Acceleration changes direction",
            ],
            "correct": "B",
            "explanation": "Gravity acts throughout the flight, so acceleration stays $g$ downward. Only the instantaneous velocity is zero at the top.",
        },
        {
            "text": "Two identical resistors are first connected in series and then in parallel across the same battery. How does the total power change?",
            "options": ["It halves", "It doubles", "It becomes four times larger", "It stays the same"],
            "correct": "C",
            "explanation": "Series resistance is $2R$, parallel is $R/2$, a factor of four smaller. With fixed voltage, $P = V^2/R$, so power rises fourfold.",
        },
        {
            "text": "A car doubles its speed. By what factor does its minimum braking distance change, assuming the same braking force?",
            "options": ["2", "4", "$\\sqrt{2}$", "8"],
            "correct": "B",
            "explanation": "Braking distance $d = v^2 / 2a$; doubling $v$ multiplies $d$ by four.",
        },
        {
            "text": "Light travels from air into glass. Which property of the light stays the same?",
            "options": ["Speed", "Wavelength", "Frequency", "Direction in every case"],
            "correct": "C",
            "explanation": "Frequency is set by the source and is unchanged at a boundary; speed and wavelength both decrease in glass.",
        },
    ],
    "chemistry": [
        {
            "text": "What mass of water is produced when 4 g of hydrogen gas reacts completely with excess oxygen? (H = 1, O = 16)",
            "options": ["18 g", "32 g", "36 g", "72 g"],
            "correct": "C",
            "explanation": "4 g of H₂ is 2 mol. 2H₂ + O₂ → 2H₂O gives 2 mol of water, which is 2 × 18 = 36 g.",
        },
        {
            "text": "Adding a catalyst to a reversible reaction at equilibrium has which effect?",
            "options": [
                "Shifts the equilibrium towards products",
                "Increases the equilibrium constant",
                "Reaches equilibrium faster without changing its position",
                "Raises the activation energy",
            ],
            "correct": "C",
            "explanation": "A catalyst lowers the activation energy of both forward and reverse reactions equally, so equilibrium is reached faster but its position and K are unchanged.",
        },
        {
            "text": "Which 0.1 M aqueous solution has the highest pH?",
            "options": ["HCl", "CH₃COOH", "NaCl", "NH₃"],
            "correct": "D",
            "explanation": "Ammonia is a weak base, giving pH above 7. NaCl is neutral, while both acids give pH below 7.",
        },
        {
            "text": "Across period 3 from sodium to chlorine, atomic radius generally does what, and why?",
            "options": [
                "Increases, because more electrons are added",
                "Decreases, because nuclear charge increases with the same number of shells",
                "Stays constant, because the shell number is constant",
                "Increases, because shielding increases strongly",
            ],
            "correct": "B",
            "explanation": "Electrons are added to the same shell while proton number rises, so the outer electrons are pulled closer and the radius shrinks.",
        },
    ],
    "biology": [
        {
            "text": "A plant cell is placed in a concentrated salt solution. What is observed under the microscope?",
            "options": [
                "The cell bursts",
                "The cytoplasm pulls away from the cell wall",
                "The cell wall dissolves",
                "The vacuole enlarges",
            ],
            "correct": "B",
            "explanation": "Water leaves by osmosis, the vacuole shrinks and the membrane pulls away from the rigid wall (plasmolysis). The wall prevents bursting in dilute solutions, not in concentrated ones.",
        },
        {
            "text": "Two carriers of a recessive disorder (Aa) have a child. What is the probability the child is a carrier?",
            "options": ["1/4", "1/2", "3/4", "1"],
            "correct": "B",
            "explanation": "Aa × Aa gives AA : Aa : aa in a 1 : 2 : 1 ratio, so half of the offspring are Aa carriers.",
        },
        {
            "text": "Why does the rate of photosynthesis stop increasing at high light intensity?",
            "options": [
                "Chlorophyll is destroyed",
                "Another factor such as CO₂ concentration becomes limiting",
                "Stomata close completely in bright light",
                "Light stops being absorbed",
            ],
            "correct": "B",
            "explanation": "Beyond a certain intensity, light is no longer the limiting factor; carbon dioxide or temperature then limits the rate.",
        },
        {
            "text": "An enzyme is heated to 80 °C and then cooled to 37 °C. What happens to its activity?",
            "options": [
                "It returns to normal",
                "It is higher than before",
                "It stays lost because the active site was denatured",
                "It depends only on substrate concentration",
            ],
            "correct": "C",
            "explanation": "High temperature breaks the bonds holding the tertiary structure, permanently changing the active site. Cooling does not reverse denaturation.",
        },
    ],
}


GENERIC_TEMPLATE = {
    "text": "Which approach best demonstrates real understanding of a key idea in {subject}{objective_part}?",
    "options": [
        "Explaining the idea in your own words and applying it to a new problem",
        "Memorising the definition word for word",
        "Recognising the idea only when it appears in a familiar example",
        "Listing related keywords without connecting them",
    ],
    "correct": "A",
    "explanation": "Understanding is shown by transferring an idea to unfamiliar situations; recall or recognition alone does not demonstrate it.",
}
