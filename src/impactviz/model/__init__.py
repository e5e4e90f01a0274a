"""
The MODEL layer contains pure data structures and mapping logic.
It has NO knowledge of the GUI (Qt), the map (folium) or the 3D view (PyVista).
It deals with simulation parameters, visual mapping and impact geography.
"""
